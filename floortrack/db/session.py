# floortrack/db/session.py
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from floortrack.core.config import settings
from floortrack.core.enums import DepartmentCode
from floortrack.db.models import Base, Department

logger = logging.getLogger("floortrack.db")


def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases only exist per connection, so share a single one
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return create_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=20)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

DEFAULT_DEPARTMENTS = {
    DepartmentCode.MANAGEMENT: "Management",
    DepartmentCode.PRODUCTION: "Production",
    DepartmentCode.TESTING: "Testing",
    DepartmentCode.QA: "Quality Assurance",
}


def seed_departments(db) -> int:
    """Inserts any missing default department. Returns how many were added."""
    existing = {code for (code,) in db.query(Department.code).all()}
    added = 0
    for code, name in DEFAULT_DEPARTMENTS.items():
        if code not in existing:
            db.add(Department(code=code, name=name))
            added += 1
    if added:
        db.commit()
    return added


def init_db(bind=None):
    """Creates missing tables and seeds the department catalogue."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = SessionLocal(bind=bind)
    try:
        added = seed_departments(db)
    finally:
        db.close()
    logger.info("Database initialized (%d departments seeded).", added)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
