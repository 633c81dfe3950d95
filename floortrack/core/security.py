# floortrack/core/security.py
# Handles password hashing, JWTs, and all role-checking dependencies.
import secrets
import string
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone

from floortrack.db import models, session
from floortrack.core.config import settings
from floortrack.core.enums import Role, RecordStatus
from floortrack.schemas import token as token_schema

# --- Password Hashing ---
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
def verify_password(plain: str, hashed: str) -> bool: return pwd_context.verify(plain, hashed)
def get_password_hash(pwd: str) -> str: return pwd_context.hash(pwd)

_SYMBOLS = "!@#$%^&*"

def generate_password(length: int = 12) -> str:
    """Random password with at least one upper, lower, digit and symbol."""
    alphabet = string.ascii_letters + string.digits + _SYMBOLS
    chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(_SYMBOLS),
    ]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)

# --- JWT Creation ---
def create_access_token(employee: models.Employee) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(employee.id), "role": Role.normalize(employee.role).value, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

# --- Role-Checking Dependencies ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(session.get_db)) -> models.Employee:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        token_data = token_schema.TokenData(id=int(payload.get("sub")), role=payload.get("role"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    # The token only carries identity; role and department are re-read every request
    employee = db.get(models.Employee, token_data.id)
    if employee is None or employee.status != RecordStatus.ACTIVE:
        raise credentials_exception
    return employee

def require_roles(*roles: Role):
    """
    Factory for role-gated dependencies.

    Usage:
        employee: models.Employee = Depends(require_roles(Role.ADMIN, Role.PLANNER))
    """
    allowed = {Role.normalize(r) for r in roles}

    def _require_roles(current_user: models.Employee = Depends(get_current_user)) -> models.Employee:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Access denied. Insufficient permissions.")
        return current_user

    return _require_roles

get_current_admin_user = require_roles(Role.ADMIN)
get_current_planner_user = require_roles(Role.ADMIN, Role.PLANNER)
get_current_supervisor_user = require_roles(Role.ADMIN, Role.SUPERVISOR)
get_current_technician_user = require_roles(Role.ADMIN, Role.PLANNER, Role.SUPERVISOR, Role.TECHNICIAN)
