"""
conftest.py: Shared pytest fixtures for the floortrack test suite.

Every test gets a fresh schema on an in-memory SQLite database. The engine
uses a StaticPool, so the fixtures' session and the sessions opened by API
requests share one connection and see each other's committed rows.

The environment is set before the first floortrack import because settings
are read once at import time.
"""
import itertools
import os
from datetime import date, time

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from floortrack.core import security  # noqa: E402
from floortrack.core.enums import ActivityType, DepartmentCode, EntryStatus, PRODUCT_STAGES, Role  # noqa: E402
from floortrack.db import models, session as db_session  # noqa: E402
from floortrack.main import app  # noqa: E402

PASSWORD = "secret-pass-123"
_UNSET = object()


@pytest.fixture(scope="session")
def password_hash():
    """Hashing is slow by design; hash the shared test password once."""
    return security.get_password_hash(PASSWORD)


@pytest.fixture
def db():
    models.Base.metadata.create_all(bind=db_session.engine)
    session = db_session.SessionLocal()
    db_session.seed_departments(session)
    try:
        yield session
    finally:
        session.close()
        models.Base.metadata.drop_all(bind=db_session.engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def make_employee(db, password_hash):
    counter = itertools.count(1)

    def _make(role=Role.TECHNICIAN, department=_UNSET, code=None):
        n = next(counter)
        if department is _UNSET:
            department = DepartmentCode.PRODUCTION if role.needs_department else None
        employee = models.Employee(
            employee_code=code or f"{role.value[:3].upper()}{n:03d}",
            full_name=f"{role.value.title()} {n}",
            hashed_password=password_hash,
            role=role,
            department=department,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_product(db):
    counter = itertools.count(1)

    def _make(code=None):
        n = next(counter)
        product = models.Product(product_code=code or f"PRD-{n:03d}", product_name=f"Product {n}")
        product.processes = [
            models.Process(department=department, stage_order=order)
            for order, department in enumerate(PRODUCT_STAGES, start=1)
        ]
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_operation(db, make_product):
    counter = itertools.count(1)

    def _make(department=DepartmentCode.PRODUCTION, product=None, minimum_time_minutes=10,
              minimum_output_count=5):
        n = next(counter)
        product = product or make_product()
        process = next(p for p in product.processes if p.department == department)
        operation = models.Operation(
            process_id=process.id, operation_name=f"Operation {n}", operation_order=n,
            minimum_time_minutes=minimum_time_minutes, minimum_output_count=minimum_output_count,
        )
        db.add(operation)
        db.commit()
        db.refresh(operation)
        return operation

    return _make


@pytest.fixture
def add_entry(db):
    """Stores a work entry directly, bypassing the API rules."""
    def _add(technician, operation, day=date(2024, 1, 1), start=(9, 0), end=(10, 0), count=4,
             status=EntryStatus.PENDING):
        start_time, end_time = time(*start), time(*end)
        entry = models.TimeEntry(
            technician_id=technician.id,
            activity_type=ActivityType.WORK,
            entry_date=day,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=(end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute),
            product_id=operation.process.product_id,
            operation_id=operation.id,
            operation_count=count,
            status=status,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    return _add


def auth_headers(employee):
    return {"Authorization": f"Bearer {security.create_access_token(employee)}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def password():
    return PASSWORD
