"""
Test Configuration and Fixtures
================================

Central configuration for pytest with all shared fixtures.

Features:
- SQLite in-memory database for testing
- TestClient setup
- Properties, departments and one profile per role
- Access tokens and auth headers per role
- Dependency overrides for database session
"""

import os
import uuid
from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Set testing environment before importing app modules
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-min-32-chars"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"  # Disable rate limiting in tests
os.environ["SERVICE_API_KEY"] = "test-service-key"
os.environ["LLM_API_KEY"] = ""
os.environ["EMAIL_API_KEY"] = ""

from staffhub.db.base import Base
from staffhub.db.session import get_db
from staffhub.models.organization import Department, Property
from staffhub.models.role_enum import Role
from staffhub.models.user import Profile
from staffhub.services.auth_service import AuthService
from staffhub.main import app as main_app


TEST_PASSWORD = "TestPassword123!"
SERVICE_KEY = "test-service-key"

# Hash once; argon2 is deliberately slow
PASSWORD_HASH = AuthService.hash_password(TEST_PASSWORD)


# =====================================
# Database Configuration
# =====================================

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =====================================
# Database Fixtures
# =====================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    Creates all tables before each test and drops them after.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a TestClient with database dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    main_app.dependency_overrides[get_db] = override_get_db

    with TestClient(main_app) as test_client:
        yield test_client

    main_app.dependency_overrides.clear()


# =====================================
# Organization Fixtures
# =====================================

@pytest.fixture
def grand_hotel(db_session: Session) -> Property:
    prop = Property(name="Grand Hotel", property_code="GH", city="Lisbon")
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture
def seaside_resort(db_session: Session) -> Property:
    """Second property for cross-tenant testing."""
    prop = Property(name="Seaside Resort", property_code="SR", city="Faro")
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture
def front_office(db_session: Session, grand_hotel: Property) -> Department:
    dept = Department(property_id=grand_hotel.id, name="Front Office")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture
def housekeeping(db_session: Session, grand_hotel: Property) -> Department:
    dept = Department(property_id=grand_hotel.id, name="Housekeeping")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture
def seaside_front_office(db_session: Session, seaside_resort: Property) -> Department:
    dept = Department(property_id=seaside_resort.id, name="Front Office")
    db_session.add(dept)
    db_session.commit()
    return dept


# =====================================
# Profile Fixtures
# =====================================

@pytest.fixture
def make_profile(db_session: Session) -> Callable[..., Profile]:
    """
    Factory for profiles.

    Usage:
        user = make_profile(Role.STAFF, grand_hotel, front_office)
    """
    def _make(
        role: Role = Role.STAFF,
        prop: Optional[Property] = None,
        department: Optional[Department] = None,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        reporting_to: Optional[Profile] = None,
        **kwargs,
    ) -> Profile:
        suffix = uuid.uuid4().hex[:8]
        profile = Profile(
            email=email or f"{role.value}.{suffix}@staffhub.io",
            hashed_password=PASSWORD_HASH,
            full_name=full_name or f"{role.value.replace('_', ' ').title()} {suffix}",
            role=role,
            property_id=prop.id if prop else None,
            department_id=department.id if department else None,
            reporting_to=reporting_to.id if reporting_to else None,
            **kwargs,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def regional_admin(make_profile) -> Profile:
    return make_profile(Role.REGIONAL_ADMIN, email="admin@staffhub.io", full_name="Rita Admin",
                        job_title="Regional Director")


@pytest.fixture
def regional_hr(make_profile) -> Profile:
    return make_profile(Role.REGIONAL_HR, email="regional.hr@staffhub.io", full_name="Rui Regional",
                        job_title="Regional HR Manager")


@pytest.fixture
def property_manager(make_profile, grand_hotel) -> Profile:
    return make_profile(Role.PROPERTY_MANAGER, grand_hotel, email="gm@grandhotel.com", full_name="Gina Manager",
                        job_title="General Manager")


@pytest.fixture
def property_hr(make_profile, grand_hotel) -> Profile:
    return make_profile(Role.PROPERTY_HR, grand_hotel, email="hr@grandhotel.com", full_name="Hugo Hr",
                        job_title="HR Manager")


@pytest.fixture
def department_head(make_profile, grand_hotel, front_office, property_manager) -> Profile:
    return make_profile(
        Role.DEPARTMENT_HEAD,
        grand_hotel,
        front_office,
        email="head.fo@grandhotel.com",
        full_name="Diana Head",
        job_title="Front Office Manager",
        reporting_to=property_manager,
    )


@pytest.fixture
def staff_user(make_profile, grand_hotel, front_office, department_head) -> Profile:
    return make_profile(
        Role.STAFF,
        grand_hotel,
        front_office,
        email="staff@grandhotel.com",
        full_name="Sam Staff",
        job_title="Receptionist",
        reporting_to=department_head,
    )


@pytest.fixture
def seaside_staff(make_profile, seaside_resort, seaside_front_office) -> Profile:
    return make_profile(
        Role.STAFF,
        seaside_resort,
        seaside_front_office,
        email="staff@seasideresort.com",
        full_name="Sofia Seaside",
        job_title="Receptionist",
    )


@pytest.fixture
def seaside_manager(make_profile, seaside_resort) -> Profile:
    return make_profile(Role.PROPERTY_MANAGER, seaside_resort, email="gm@seasideresort.com", full_name="Sergio Manager",
                        job_title="General Manager")


# =====================================
# Token Fixtures
# =====================================

def token_for(user: Profile) -> str:
    return AuthService.create_access_token(
        user_id=user.id,
        tenant_id=user.property_id,
        token_version=user.token_version,
    )


def headers_for(user: Profile) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def staff_headers(staff_user: Profile) -> dict:
    return headers_for(staff_user)


@pytest.fixture
def head_headers(department_head: Profile) -> dict:
    return headers_for(department_head)


@pytest.fixture
def hr_headers(property_hr: Profile) -> dict:
    return headers_for(property_hr)


@pytest.fixture
def manager_headers(property_manager: Profile) -> dict:
    return headers_for(property_manager)


@pytest.fixture
def regional_hr_headers(regional_hr: Profile) -> dict:
    return headers_for(regional_hr)


@pytest.fixture
def admin_headers(regional_admin: Profile) -> dict:
    return headers_for(regional_admin)


@pytest.fixture
def seaside_headers(seaside_staff: Profile) -> dict:
    return headers_for(seaside_staff)


@pytest.fixture
def service_headers() -> dict:
    return {"Authorization": f"Bearer {SERVICE_KEY}"}


# =====================================
# Utility Fixtures
# =====================================

@pytest.fixture
def test_password() -> str:
    """Return a test password that meets all requirements."""
    return TEST_PASSWORD
