# floortrack/schemas/token.py
from pydantic import BaseModel
from typing import Optional

from floortrack.schemas.employee import Employee

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee: Employee

class TokenData(BaseModel):
    id: int
    role: Optional[str] = None
