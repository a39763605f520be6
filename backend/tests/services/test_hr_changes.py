"""
HR Change Application Tests
===========================

Covers:
- apply_if_due applies only approved changes that have come into effect
- The current date is taken in UTC
"""

from datetime import date, datetime, timezone

import pytest

from staffhub.core.enums import HRChangeStatus
from staffhub.models.hr import Promotion, Transfer
from staffhub.models.role_enum import Role
from staffhub.services import hr_changes
from staffhub.services.hr_changes import apply_if_due, process_due_changes


pytestmark = pytest.mark.unit


@pytest.fixture
def transfer(db_session, staff_user, grand_hotel, seaside_resort, seaside_front_office) -> Transfer:
    change = Transfer(
        employee_id=staff_user.id,
        from_property_id=grand_hotel.id,
        to_property_id=seaside_resort.id,
        to_department_id=seaside_front_office.id,
        effective_date=date(2026, 11, 1),
        status=HRChangeStatus.APPROVED,
    )
    db_session.add(change)
    db_session.commit()
    return change


class TestApplyIfDue:
    """Tests for apply_if_due."""

    def test_future_change_waits(self, db_session, transfer, staff_user, grand_hotel):
        """Test a change effective later is left alone."""
        # Act
        applied = apply_if_due(db_session, transfer, today=date(2026, 10, 31))

        # Assert
        assert applied is False
        assert transfer.status == HRChangeStatus.APPROVED
        assert staff_user.property_id == grand_hotel.id

    def test_due_change_applied(self, db_session, transfer, staff_user, seaside_resort):
        """Test a change effective today moves the employee."""
        # Act
        applied = apply_if_due(db_session, transfer, today=date(2026, 11, 1))

        # Assert
        assert applied is True
        assert transfer.status == HRChangeStatus.COMPLETED
        assert staff_user.property_id == seaside_resort.id

    def test_unapproved_change_ignored(self, db_session, staff_user):
        """Test only approved changes are applied."""
        # Arrange
        promotion = Promotion(
            employee_id=staff_user.id,
            new_role=Role.DEPARTMENT_HEAD,
            effective_date=date(2026, 10, 1),
            status=HRChangeStatus.REJECTED,
        )

        # Act / Assert
        assert apply_if_due(db_session, promotion, today=date(2026, 11, 1)) is False
        assert staff_user.role == Role.STAFF


class TestUtcDate:
    """Tests for the default date."""

    def test_default_today_is_utc(self, db_session, transfer, monkeypatch):
        """Test the effective date is compared with the UTC calendar day."""
        # Arrange
        monkeypatch.setattr(hr_changes, "utcnow", lambda: datetime(2026, 11, 1, 0, 30, tzinfo=timezone.utc))

        # Act
        result = process_due_changes(db_session)

        # Assert
        assert result == {"promotions_applied": 0, "transfers_applied": 1}
        assert transfer.status == HRChangeStatus.COMPLETED
