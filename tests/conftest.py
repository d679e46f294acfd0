import itertools
import os
from datetime import datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from hrms.core.init_system import seed_leave_types
from hrms.database import Base, get_db
from hrms.dependencies import get_clock
from hrms.main import app
from hrms.models.employee import Employee, EmployeeRole, EmploymentStatus, Gender
from hrms.models.leave_type import LeaveType
from hrms.models.location import Location
from hrms.services.auth import create_access_token
from fastapi.testclient import TestClient

OFFICE_LAT = 24.8607
OFFICE_LON = 67.0011


class FrozenClock:
    """Stands in for the wall clock; tests move it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime):
        self.now = now


@pytest.fixture(scope="function")
def engine():
    # A fresh database per test: services commit and roll back on their own
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def clock():
    # Wednesday, shift start
    return FrozenClock(datetime(2024, 1, 10, 9, 0))


@pytest.fixture(scope="function")
def office(db_session):
    location = Location(
        name="Karachi HQ",
        country_code="PK",
        latitude=OFFICE_LAT,
        longitude=OFFICE_LON,
        geo_fence_radius_meters=200,
    )
    db_session.add(location)
    db_session.commit()
    db_session.refresh(location)
    return location


@pytest.fixture(scope="function")
def leave_types(db_session):
    seed_leave_types(db_session)
    db_session.commit()
    return {lt.code: lt for lt in db_session.query(LeaveType).all()}


@pytest.fixture(scope="function")
def make_employee(db_session, office):
    counter = itertools.count(1)

    def _make(role=EmployeeRole.EMPLOYEE, manager=None, gender=None, monthly_salary=Decimal("3000"),
              shift_start_time=time(9, 0), location=office, **kwargs):
        n = next(counter)
        employee = Employee(
            employee_code=kwargs.pop("employee_code", f"E{n:03d}"),
            first_name=kwargs.pop("first_name", f"Test{n}"),
            last_name=kwargs.pop("last_name", "User"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            gender=gender,
            role=role,
            reporting_manager_id=manager.id if manager else None,
            location_id=location.id if location else None,
            shift_start_time=shift_start_time,
            shift_end_time=time(18, 0),
            monthly_salary=monthly_salary,
            employment_status=kwargs.pop("employment_status", EmploymentStatus.ACTIVE),
            **kwargs,
        )
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee
    return _make


@pytest.fixture(scope="function")
def hr_user(make_employee):
    return make_employee(role=EmployeeRole.HR, first_name="Hina", last_name="Raza")


@pytest.fixture(scope="function")
def admin_user(make_employee):
    return make_employee(role=EmployeeRole.ADMIN, first_name="Adeel", last_name="Admin")


@pytest.fixture(scope="function")
def payroll_user(make_employee):
    return make_employee(role=EmployeeRole.PAYROLL, first_name="Pay", last_name="Master")


@pytest.fixture(scope="function")
def manager(make_employee):
    return make_employee(role=EmployeeRole.MANAGER, first_name="Maria", last_name="Manager")


@pytest.fixture(scope="function")
def employee(make_employee, manager):
    return make_employee(manager=manager, gender=Gender.FEMALE, first_name="Sara", last_name="Khan")


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to mint access tokens for an employee."""
    def _get_token(employee):
        return create_access_token(employee.id, employee.role)
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _headers(employee):
        return {"Authorization": f"Bearer {get_token(employee)}"}
    return _headers


@pytest.fixture(scope="function")
def client(db_session, clock):
    """TestClient bound to the per-test database and the frozen clock."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
