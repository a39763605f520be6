"""
Schema Validation Unit Tests
=============================

Tests for Pydantic schema validation including:
- LoginRequest, TokenResponse, LogoutResponse
- PasswordChangeRequest
- UserCreate, UserUpdate, UserResponse
- PropertyCreate, DepartmentCreate
- LeaveRequestCreate
- RequestActionBody
- MessageCreate
- QuestionCreate
- TicketCreate
"""

from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from staffhub.core.enums import LeaveType, MessageType, QuestionType, RequestAction, TicketCategory, TicketPriority
from staffhub.models.role_enum import Role
from staffhub.schemas.auth import ErrorResponse, LoginRequest, LogoutResponse, PasswordChangeRequest, TokenResponse
from staffhub.schemas.communication import MessageCreate
from staffhub.schemas.hr import LeaveRequestCreate
from staffhub.schemas.knowledge import QuestionCreate
from staffhub.schemas.organization import DepartmentCreate, PropertyCreate
from staffhub.schemas.request import RequestActionBody
from staffhub.schemas.task import TicketCreate
from staffhub.schemas.user import UserCreate, UserResponse, UserUpdate


pytestmark = pytest.mark.schema


class TestLoginRequest:
    """Tests for LoginRequest schema."""

    def test_valid_login_request(self):
        """Test valid login request creation."""
        # Act
        request = LoginRequest(email="desk@grandhotel.com", password="Secret123")

        # Assert
        assert request.email == "desk@grandhotel.com"

    def test_invalid_email_raises_error(self):
        """Test that an invalid email raises a validation error."""
        with pytest.raises(PydanticValidationError):
            LoginRequest(email="not-an-email", password="Secret123")

    def test_empty_password_raises_error(self):
        """Test that an empty password raises a validation error."""
        with pytest.raises(PydanticValidationError):
            LoginRequest(email="desk@grandhotel.com", password="")


class TestTokenSchemas:
    """Tests for token and logout responses."""

    def test_token_type_defaults_to_bearer(self):
        """Test token_type defaults to bearer."""
        response = TokenResponse(access_token="a", refresh_token="r")
        assert response.token_type == "bearer"
        assert response.expires_in is None

    def test_logout_default_message(self):
        """Test the default logout message."""
        assert LogoutResponse().message == "Successfully logged out"

    def test_error_response_optional_fields(self):
        """Test only the message is required on error responses."""
        error = ErrorResponse(message="Leave request not found")
        assert error.code is None
        assert error.details is None


class TestPasswordChangeRequest:
    """Tests for PasswordChangeRequest schema."""

    def test_valid_password_change(self):
        """Test a strong new password is accepted."""
        request = PasswordChangeRequest(current_password="Old12345", new_password="NewSecure456")
        assert request.new_password == "NewSecure456"

    @pytest.mark.parametrize(
        "password, fragment",
        [
            ("lowercase123", "uppercase"),
            ("UPPERCASE123", "lowercase"),
            ("NoDigitsHere", "digit"),
        ],
    )
    def test_weak_password_rejected(self, password, fragment):
        """Test each missing character class is reported."""
        with pytest.raises(PydanticValidationError) as exc_info:
            PasswordChangeRequest(current_password="Old12345", new_password=password)
        assert fragment in str(exc_info.value)

    def test_short_password_rejected(self):
        """Test new passwords need at least eight characters."""
        with pytest.raises(PydanticValidationError):
            PasswordChangeRequest(current_password="Old12345", new_password="Ab1")


class TestUserSchemas:
    """Tests for UserCreate, UserUpdate and UserResponse."""

    def test_default_role_is_staff(self):
        """Test new accounts default to the staff role."""
        user = UserCreate(email="new@grandhotel.com", password="Welcome123", full_name="New Hire")
        assert user.role == Role.STAFF

    def test_unknown_role_rejected(self):
        """Test roles outside the enum are rejected."""
        with pytest.raises(PydanticValidationError):
            UserCreate(email="new@grandhotel.com", password="Welcome123", full_name="New Hire", role="owner")

    def test_partial_update(self):
        """Test updates only carry the fields that were set."""
        update = UserUpdate(is_active=False)
        assert update.model_dump(exclude_unset=True) == {"is_active": False}

    def test_response_from_attributes(self, staff_user):
        """Test responses are built straight from a profile."""
        # Act
        response = UserResponse.model_validate(staff_user)

        # Assert
        assert response.id == staff_user.id
        assert response.role == Role.STAFF
        assert not hasattr(response, "hashed_password")


class TestOrganizationSchemas:
    """Tests for PropertyCreate and DepartmentCreate."""

    def test_short_property_name_rejected(self):
        """Test property names need at least two characters."""
        with pytest.raises(PydanticValidationError):
            PropertyCreate(name="X")

    def test_department_requires_property(self):
        """Test departments must name their property."""
        with pytest.raises(PydanticValidationError):
            DepartmentCreate(name="Spa")


class TestLeaveRequestCreate:
    """Tests for LeaveRequestCreate schema."""

    def test_single_day(self):
        """Test a leave may start and end on the same day."""
        leave = LeaveRequestCreate(leave_type=LeaveType.SICK, start_date=date(2026, 11, 2), end_date=date(2026, 11, 2))
        assert leave.leave_type == LeaveType.SICK

    def test_reversed_dates_rejected(self):
        """Test end_date before start_date is rejected."""
        with pytest.raises(PydanticValidationError):
            LeaveRequestCreate(leave_type="annual", start_date=date(2026, 11, 6), end_date=date(2026, 11, 2))


class TestRequestActionBody:
    """Tests for RequestActionBody schema."""

    def test_approve_without_comment(self):
        """Test approvals need no comment."""
        body = RequestActionBody(action="approve")
        assert body.action == RequestAction.APPROVE

    def test_forward_requires_target(self):
        """Test forwarding needs a forward_to profile."""
        with pytest.raises(PydanticValidationError):
            RequestActionBody(action="forward")

    def test_forward_with_target(self):
        """Test forwarding with a target is accepted."""
        target = uuid4()
        assert RequestActionBody(action="forward", forward_to=target).forward_to == target

    def test_blank_comment_rejected(self):
        """Test add_comment needs a non-blank comment."""
        with pytest.raises(PydanticValidationError):
            RequestActionBody(action="add_comment", comment="   ")


class TestMessageCreate:
    """Tests for MessageCreate schema."""

    def test_direct_requires_recipient(self):
        """Test direct messages need a recipient."""
        with pytest.raises(PydanticValidationError):
            MessageCreate(body="Hello")

    def test_broadcast_without_recipient(self):
        """Test broadcasts need no recipient."""
        message = MessageCreate(body="Fire drill at 10:00", message_type="broadcast")
        assert message.message_type == MessageType.BROADCAST

    def test_system_messages_rejected(self):
        """Test users cannot send system messages."""
        with pytest.raises(PydanticValidationError):
            MessageCreate(body="Maintenance window", message_type="system", recipient_id=uuid4())


class TestQuestionCreate:
    """Tests for QuestionCreate schema."""

    def test_mcq_needs_two_options(self):
        """Test multiple choice questions need at least two options."""
        with pytest.raises(PydanticValidationError):
            QuestionCreate(question_type="mcq", prompt="Pick one", options=["a"], correct_answer="a")

    def test_true_false_answer(self):
        """Test true/false answers must be true or false."""
        with pytest.raises(PydanticValidationError):
            QuestionCreate(question_type="true_false", prompt="Is it safe?", correct_answer="maybe")

    def test_fill_blank(self):
        """Test fill-in-the-blank questions need no options."""
        question = QuestionCreate(question_type="fill_blank", prompt="Check-out is at ___", correct_answer="noon")
        assert question.question_type == QuestionType.FILL_BLANK
        assert question.difficulty == "medium"

    def test_unknown_difficulty_rejected(self):
        """Test difficulty is limited to easy, medium and hard."""
        with pytest.raises(PydanticValidationError):
            QuestionCreate(question_type="fill_blank", prompt="Check-out is at ___", correct_answer="noon",
                           difficulty="extreme")


class TestTicketCreate:
    """Tests for TicketCreate schema."""

    def test_defaults(self):
        """Test tickets default to general category and medium priority."""
        ticket = TicketCreate(title="Leaking tap")
        assert ticket.category == TicketCategory.GENERAL
        assert ticket.priority == TicketPriority.MEDIUM

    def test_long_room_number_rejected(self):
        """Test room numbers are capped at twenty characters."""
        with pytest.raises(PydanticValidationError):
            TicketCreate(title="Leaking tap", room_number="R" * 21)
