"""
Approval Escalation Job Tests
=============================

Covers:
- Leave requests pending past the timeout notify managers
- Fresh requests are left alone
- One escalation per item per UTC day
- Document approvals notify the approver role
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from staffhub.core.enums import LeaveType, NotificationType, ReminderType
from staffhub.jobs.escalation import run_approval_escalation
from staffhub.models.hr import LeaveRequest
from staffhub.models.knowledge import Document, DocumentApproval
from staffhub.models.notification import Notification, ScheduledReminder
from staffhub.models.role_enum import Role


pytestmark = pytest.mark.jobs

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_leave(db_session, staff_user, grand_hotel):
    def make(age_hours):
        leave = LeaveRequest(
            requester_id=staff_user.id,
            property_id=grand_hotel.id,
            leave_type=LeaveType.ANNUAL,
            start_date=date(2026, 11, 2),
            end_date=date(2026, 11, 6),
            created_at=NOW - timedelta(hours=age_hours),
        )
        db_session.add(leave)
        db_session.commit()
        return leave
    return make


class TestLeaveEscalation:
    """Tests for overdue leave requests."""

    def test_overdue_leave_notifies_managers(self, db_session, make_leave, property_manager, regional_hr):
        """Test each manager-level user receives one escalation."""
        # Arrange
        leave = make_leave(72)

        # Act
        result = run_approval_escalation(db_session, now=NOW)

        # Assert
        assert result == {"success": True, "approvals_escalated": 2}
        recipients = {
            n.user_id for n in db_session.query(Notification)
            .filter(Notification.entity_id == leave.id)
            .all()
        }
        assert recipients == {property_manager.id, regional_hr.id}
        notification = db_session.query(Notification).filter(Notification.user_id == property_manager.id).first()
        assert notification.type == NotificationType.APPROVAL_REQUIRED
        assert "Sam Staff" in notification.message

    def test_fresh_leave_not_escalated(self, db_session, make_leave, property_manager):
        """Test requests younger than the timeout are skipped."""
        # Arrange
        make_leave(2)

        # Act
        result = run_approval_escalation(db_session, now=NOW)

        # Assert
        assert result["approvals_escalated"] == 0

    def test_once_per_day(self, db_session, make_leave, property_manager):
        """Test a second run on the same day does nothing and the next day escalates again."""
        # Arrange
        leave = make_leave(72)
        run_approval_escalation(db_session, now=NOW)

        # Act
        same_day = run_approval_escalation(db_session, now=NOW + timedelta(hours=6))
        next_day = run_approval_escalation(db_session, now=NOW + timedelta(days=1))

        # Assert
        assert same_day["approvals_escalated"] == 0
        assert next_day["approvals_escalated"] == 1
        reminders = db_session.query(ScheduledReminder).filter(ScheduledReminder.entity_id == leave.id).all()
        assert len(reminders) == 2
        assert all(r.reminder_type == ReminderType.ESCALATION for r in reminders)

    def test_no_active_managers(self, db_session, make_leave, property_manager):
        """Test nothing is escalated when no manager-level user is active."""
        # Arrange
        property_manager.is_active = False
        make_leave(72)

        # Act
        result = run_approval_escalation(db_session, now=NOW)

        # Assert
        assert result["approvals_escalated"] == 0


class TestDocumentApprovalEscalation:
    """Tests for overdue document approvals."""

    def test_approver_role_notified(self, db_session, grand_hotel, property_manager, property_hr):
        """Test only holders of the approver role are notified."""
        # Arrange
        document = Document(title="Pool Safety SOP", property_id=grand_hotel.id, created_by=property_hr.id)
        db_session.add(document)
        db_session.flush()
        db_session.add(DocumentApproval(
            document_id=document.id,
            approver_role=Role.PROPERTY_MANAGER,
            created_at=NOW - timedelta(hours=60),
        ))
        db_session.commit()

        # Act
        result = run_approval_escalation(db_session, now=NOW)

        # Assert
        assert result["approvals_escalated"] == 1
        notification = db_session.query(Notification).filter(Notification.entity_id == document.id).one()
        assert notification.user_id == property_manager.id
        assert "Pool Safety SOP" in notification.message
        assert notification.meta["escalated"] is True
