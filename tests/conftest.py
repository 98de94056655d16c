"""
Pytest configuration and fixtures
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bloodbank.main import app
from bloodbank.database import (
    Base, get_db, User, Role, BloodType, BloodInventory, InventoryStatus
)
from bloodbank.services import hash_password, issue_token

# Use in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory that stores a user with a hashed password"""
    def _make_user(username, role, password="password123", email=None, **fields):
        user = User(
            username=username,
            email=email or f"{username}@bloodbank.org",
            password=hash_password(password),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", Role.ADMIN, password="admin123", first_name="Admin", last_name="User")


@pytest.fixture
def doctor_user(make_user):
    return make_user("doctor1", Role.DOCTOR, password="doctor123", first_name="John", last_name="Doe")


@pytest.fixture
def nurse_user(make_user):
    return make_user("nurse1", Role.NURSE, password="nurse123", first_name="Mary", last_name="Hill")


@pytest.fixture
def technician_user(make_user):
    return make_user("tech1", Role.TECHNICIAN, password="tech123", first_name="Tom", last_name="Baker")


@pytest.fixture
def donor_user(make_user):
    return make_user(
        "donor1", Role.DONOR,
        password="donor123",
        first_name="Jane",
        last_name="Smith",
        blood_type=BloodType.O_NEGATIVE
    )


def bearer(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def auth_headers_admin(admin_user):
    return bearer(admin_user)


@pytest.fixture
def auth_headers_doctor(doctor_user):
    return bearer(doctor_user)


@pytest.fixture
def auth_headers_nurse(nurse_user):
    return bearer(nurse_user)


@pytest.fixture
def auth_headers_technician(technician_user):
    return bearer(technician_user)


@pytest.fixture
def auth_headers_donor(donor_user):
    return bearer(donor_user)


@pytest.fixture
def make_unit(db_session):
    """Factory that stores a blood unit directly"""
    def _make_unit(
        quantity=450,
        blood_type=BloodType.A_POSITIVE,
        status=InventoryStatus.AVAILABLE,
        expires_in=timedelta(days=30),
        **fields
    ):
        unit = BloodInventory(
            blood_type=blood_type,
            quantity=quantity,
            unit_of_measure=fields.pop("unit_of_measure", "ml"),
            expiry_date=fields.pop("expiry_date", datetime.utcnow() + expires_in),
            status=status,
            **fields
        )
        db_session.add(unit)
        db_session.commit()
        db_session.refresh(unit)
        return unit

    return _make_unit
