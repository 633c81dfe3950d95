# floortrack/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from floortrack.db import models, session
from floortrack.core import security
from floortrack.schemas import employee as employee_schema

router = APIRouter()

@router.get("/me", response_model=employee_schema.Employee)
def read_user_me(current_user: models.Employee = Depends(security.get_current_user)):
    """
    Get the details for the currently logged-in employee.
    """
    return current_user

@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def update_user_password(
    passwords: employee_schema.PasswordUpdate,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    Allows a logged-in employee to change their own password.
    """
    if not security.verify_password(passwords.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect current password")

    current_user.hashed_password = security.get_password_hash(passwords.new_password)
    db.commit()
    return
