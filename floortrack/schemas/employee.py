# floortrack/schemas/employee.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from floortrack.core.enums import DepartmentCode, RecordStatus, Role

class EmployeeBase(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None

class EmployeeCreate(EmployeeBase):
    # Generated by the server when omitted
    password: Optional[str] = Field(None, min_length=8)
    role: Role
    department: Optional[DepartmentCode] = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        return Role.normalize(value)

class EmployeeUpdate(BaseModel):
    employee_code: Optional[str] = Field(None, min_length=1, max_length=50)
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    department: Optional[DepartmentCode] = None
    status: Optional[RecordStatus] = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        return None if value is None else Role.normalize(value)

class Employee(EmployeeBase):
    id: int
    role: Role
    department: Optional[DepartmentCode] = None
    status: RecordStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class EmployeeRef(BaseModel):
    id: int
    employee_code: str
    role: Role
    department: Optional[DepartmentCode] = None

    class Config:
        from_attributes = True

class EmployeeCreated(BaseModel):
    message: str
    user: Employee
    generated_password: Optional[str] = None

class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)

class PasswordReset(BaseModel):
    new_password: Optional[str] = Field(None, min_length=8)
