# floortrack/api/v1/endpoints/admin.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from floortrack.core import security
from floortrack.core.enums import DepartmentCode, Role
from floortrack.db import models, session
from floortrack.schemas import catalog as catalog_schema
from floortrack.schemas import employee as employee_schema
from floortrack.schemas import report as report_schema
from floortrack.services import statistics

router = APIRouter()
logger = logging.getLogger("floortrack.admin")

def _check_department(role: Role, department: Optional[DepartmentCode]):
    if role.needs_department and department is None:
        raise HTTPException(status_code=400, detail=f"Department is required for the {role.value} role")

def _code_taken(db: Session, employee_code: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.Employee).filter(models.Employee.employee_code == employee_code)
    if exclude_id is not None:
        query = query.filter(models.Employee.id != exclude_id)
    return query.first() is not None

def _get_employee(db: Session, user_id: int) -> models.Employee:
    employee = db.get(models.Employee, user_id)
    if not employee:
        raise HTTPException(status_code=404, detail="User not found")
    return employee

# --- Users ---

@router.post("/users", response_model=employee_schema.EmployeeCreated, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: employee_schema.EmployeeCreate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Creates a new employee. A password is generated when none is given and returned once. """
    _check_department(user_in.role, user_in.department)
    if _code_taken(db, user_in.employee_code):
        raise HTTPException(status_code=400, detail="Employee code already exists")

    generated = None
    password = user_in.password
    if not password:
        password = generated = security.generate_password()

    employee = models.Employee(
        employee_code=user_in.employee_code, full_name=user_in.full_name, email=user_in.email,
        hashed_password=security.get_password_hash(password), role=user_in.role,
        department=user_in.department,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info("Employee created", extra={"employee_id": employee.id})
    return {"message": "User created successfully", "user": employee, "generated_password": generated}

@router.get("/users", response_model=List[employee_schema.Employee])
def get_all_users(
    role: Optional[str] = None,
    department: Optional[DepartmentCode] = None,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Retrieves all employees, optionally by role and department. """
    query = db.query(models.Employee)
    if role:
        try:
            query = query.filter(models.Employee.role == Role.normalize(role))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    if department:
        query = query.filter(models.Employee.department == department)
    return query.order_by(models.Employee.id).all()

@router.get("/users/{user_id}", response_model=employee_schema.Employee)
def get_user(
    user_id: int,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    return _get_employee(db, user_id)

@router.put("/users/{user_id}", response_model=employee_schema.Employee)
def update_user_details(
    user_id: int,
    updates: employee_schema.EmployeeUpdate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Updates an employee's code, name, e-mail, role, department or status. """
    employee = _get_employee(db, user_id)
    update_data = updates.model_dump(exclude_unset=True)

    role = update_data.get("role") or employee.role
    department = update_data["department"] if "department" in update_data else employee.department
    _check_department(role, department)
    code = update_data.get("employee_code")
    if code and _code_taken(db, code, exclude_id=employee.id):
        raise HTTPException(status_code=400, detail="Employee code already exists")

    for field, value in update_data.items():
        setattr(employee, field, value)
    db.commit()
    db.refresh(employee)
    return employee

@router.delete("/users/{user_id}")
def remove_user(
    user_id: int,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Deletes an employee. An admin can never delete their own account. """
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    employee = _get_employee(db, user_id)
    db.delete(employee)
    db.commit()
    logger.info("Employee deleted", extra={"employee_id": user_id})
    return {"message": "User deleted successfully"}

@router.post("/users/{user_id}/reset-password")
def reset_user_password(
    user_id: int,
    password_in: Optional[employee_schema.PasswordReset] = None,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Resets any employee's password, generating one when none is supplied. """
    employee = _get_employee(db, user_id)
    new_password = password_in.new_password if password_in and password_in.new_password else None
    generated = None
    if new_password is None:
        new_password = generated = security.generate_password()

    employee.hashed_password = security.get_password_hash(new_password)
    db.commit()
    return {"message": "Password reset successfully", "generated_password": generated}

@router.get("/generate-password")
def generate_password(admin: models.Employee = Depends(security.get_current_admin_user)):
    return {"password": security.generate_password()}

# --- Departments ---

@router.get("/departments", response_model=List[catalog_schema.Department])
def list_departments(
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    return db.query(models.Department).order_by(models.Department.code).all()

@router.post("/departments", response_model=catalog_schema.Department, status_code=status.HTTP_201_CREATED)
def create_department(
    department_in: catalog_schema.DepartmentCreate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    if db.get(models.Department, department_in.code):
        raise HTTPException(status_code=400, detail="Department already exists")
    department = models.Department(**department_in.model_dump())
    db.add(department)
    db.commit()
    return department

@router.put("/departments/{code}", response_model=catalog_schema.Department)
def update_department(
    code: DepartmentCode,
    updates: catalog_schema.DepartmentUpdate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    department = db.get(models.Department, code)
    if not department:
        raise HTTPException(status_code=404, detail="Department not found")
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(department, field, value)
    db.commit()
    return department

@router.delete("/departments/{code}")
def delete_department(
    code: DepartmentCode,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    department = db.get(models.Department, code)
    if not department:
        raise HTTPException(status_code=404, detail="Department not found")
    in_use = db.query(models.Employee.id).filter(models.Employee.department == code).first() or \
        db.query(models.Process.id).filter(models.Process.department == code).first()
    if in_use:
        raise HTTPException(status_code=400,
                            detail="Cannot delete department. It is still assigned to employees or processes.")
    db.delete(department)
    db.commit()
    return {"message": "Department deleted successfully"}

# --- Statistics ---

@router.get("/stats", response_model=report_schema.SystemStats)
def read_system_stats(
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    return statistics.system_stats(db)

@router.get("/stats/employees", response_model=List[report_schema.EmployeeStats])
def read_employee_stats(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    department: Optional[DepartmentCode] = None,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Per-employee review tallies and approved output. """
    return statistics.employee_stats(db, start_date, end_date, department)
