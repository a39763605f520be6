"""
Model Unit Tests
================

Tests for SQLAlchemy models including:
- Role enum and role groups
- Profile defaults, helpers and serialization
- Property and department constraints
- Leave and approval request helpers
"""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffhub.core.enums import LeaveStatus, LeaveType, RequestStatus, StepStatus
from staffhub.models.hr import LeaveRequest
from staffhub.models.organization import Department, Property
from staffhub.models.request import Request, RequestStep
from staffhub.models.role_enum import HR_ROLES, REGIONAL_ROLES, Role, is_regional
from staffhub.models.user import Profile


pytestmark = pytest.mark.unit


class TestRoleEnum:
    """Tests for Role enum."""

    def test_role_count(self):
        """Test that there are exactly 6 roles."""
        assert len(list(Role)) == 6

    def test_role_is_string_enum(self):
        """Test that Role compares equal to its value."""
        assert isinstance(Role.STAFF, str)
        assert Role("property_hr") == Role.PROPERTY_HR

    def test_regional_roles(self):
        """Test only regional HR and regional admin span every property."""
        assert set(REGIONAL_ROLES) == {Role.REGIONAL_HR, Role.REGIONAL_ADMIN}
        assert is_regional(Role.REGIONAL_ADMIN)
        assert not is_regional(Role.PROPERTY_MANAGER)

    def test_hr_roles(self):
        """Test property HR is the only property-scoped HR role."""
        assert Role.PROPERTY_HR in HR_ROLES
        assert Role.PROPERTY_MANAGER not in HR_ROLES


class TestProfileModel:
    """Tests for Profile model."""

    def test_defaults(self):
        """Test Python-level defaults apply before flush."""
        # Act
        profile = Profile(email="new@staffhub.io", hashed_password="x", full_name="New Hire")

        # Assert
        assert profile.role == Role.STAFF
        assert profile.is_active is True
        assert profile.is_locked is False
        assert profile.failed_attempts == 0
        assert profile.token_version == 1

    def test_tenant_id_alias(self, staff_user: Profile, grand_hotel: Property):
        """Test tenant_id mirrors property_id."""
        assert staff_user.tenant_id == grand_hotel.id

    def test_display_name_falls_back_to_email(self):
        """Test display_name uses the email when no name is set."""
        profile = Profile(email="anon@staffhub.io", hashed_password="x", full_name="")
        assert profile.display_name == "anon@staffhub.io"

    def test_unlock_account(self, staff_user: Profile):
        """Test unlocking clears the lock and failed attempts."""
        # Arrange
        staff_user.is_locked = True
        staff_user.failed_attempts = 5

        # Act
        staff_user.unlock_account()

        # Assert
        assert staff_user.is_locked is False
        assert staff_user.failed_attempts == 0

    def test_invalidate_tokens(self, staff_user: Profile):
        """Test invalidating tokens bumps the version."""
        # Arrange
        before = staff_user.token_version

        # Act
        staff_user.invalidate_tokens()

        # Assert
        assert staff_user.token_version == before + 1

    def test_to_dict_excludes_secrets(self, staff_user: Profile, front_office: Department):
        """Test serialization carries placement names and no password data."""
        # Act
        data = staff_user.to_dict()

        # Assert
        assert data["property_name"] == "Grand Hotel"
        assert data["department_name"] == front_office.name
        assert "hashed_password" not in data
        assert "token_version" not in data

    def test_email_unique(self, db_session: Session, staff_user: Profile):
        """Test two profiles cannot share an email."""
        # Arrange
        db_session.add(Profile(email=staff_user.email, hashed_password="x", full_name="Copy"))

        # Act / Assert
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestOrganizationModels:
    """Tests for Property and Department models."""

    def test_property_defaults(self):
        """Test new properties are active and not headquarters."""
        prop = Property(name="City Inn")
        assert prop.is_active is True
        assert prop.is_headquarters is False

    def test_department_count(self, grand_hotel: Property, front_office: Department, housekeeping: Department):
        """Test property serialization counts its departments."""
        assert grand_hotel.to_dict()["department_count"] == 2

    def test_department_name_unique_per_property(self, db_session: Session, front_office: Department):
        """Test a property cannot hold two departments with the same name."""
        # Arrange
        db_session.add(Department(property_id=front_office.property_id, name=front_office.name))

        # Act / Assert
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_same_department_name_at_other_property(
        self,
        db_session: Session,
        front_office: Department,
        seaside_front_office: Department,
    ):
        """Test department names only need to be unique within a property."""
        assert front_office.name == seaside_front_office.name
        assert front_office.property_id != seaside_front_office.property_id


class TestLeaveAndRequestModels:
    """Tests for LeaveRequest and Request helpers."""

    def test_leave_total_days_inclusive(self):
        """Test leave spans count both the first and last day."""
        # Act
        leave = LeaveRequest(leave_type=LeaveType.ANNUAL, start_date=date(2026, 11, 2), end_date=date(2026, 11, 6))

        # Assert
        assert leave.total_days == 5
        assert leave.status == LeaveStatus.PENDING

    def test_request_defaults(self):
        """Test new requests start as drafts with empty metadata."""
        request = Request()
        assert request.status == RequestStatus.DRAFT
        assert request.meta == {}

    def test_current_step_is_lowest_pending(self):
        """Test the current step is the lowest-ordered pending step."""
        # Arrange
        request = Request(
            steps=[
                RequestStep(step_order=1, status=StepStatus.APPROVED),
                RequestStep(step_order=3, status=StepStatus.PENDING),
                RequestStep(step_order=2, status=StepStatus.PENDING),
            ]
        )

        # Act / Assert
        assert request.current_step.step_order == 2

    def test_no_current_step_when_done(self):
        """Test a fully decided request has no current step."""
        request = Request(steps=[RequestStep(step_order=1, status=StepStatus.APPROVED)])
        assert request.current_step is None
