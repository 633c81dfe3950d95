# floortrack/api/v1/endpoints/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from floortrack.db import session, models
from floortrack.core import security
from floortrack.core.enums import RecordStatus
from floortrack.schemas import token as token_schema

router = APIRouter()
logger = logging.getLogger("floortrack.auth")

@router.post("/token", response_model=token_schema.Token)
def login(db: Session = Depends(session.get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    """ Exchanges an employee code and password for a bearer token. """
    employee = db.query(models.Employee).filter(models.Employee.employee_code == form_data.username).first()
    if not employee or not security.verify_password(form_data.password, employee.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if employee.status != RecordStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is inactive")

    logger.info("Login", extra={"employee_id": employee.id})
    return {"access_token": security.create_access_token(employee), "token_type": "bearer", "employee": employee}
