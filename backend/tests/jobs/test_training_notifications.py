"""
Training Notification Job Tests
===============================

Covers:
- Deadline reminders inside the 24 hour window, sent once
- Certificate warnings at 30 and 7 days only
- Weekly department head summaries, skipping quiet teams
"""

from datetime import datetime, timedelta, timezone

import pytest

from staffhub.core.enums import NotificationType, TrainingStatus
from staffhub.jobs.training_notifications import run_training_notifications, run_weekly_report
from staffhub.models.notification import Notification
from staffhub.models.role_enum import Role
from staffhub.models.training import (
    TrainingAssignment,
    TrainingCertificate,
    TrainingModule,
    TrainingProgress,
)


pytestmark = pytest.mark.jobs

NOW = datetime(2026, 10, 18, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def module(db_session):
    module = TrainingModule(title="Guest Data Privacy")
    db_session.add(module)
    db_session.commit()
    return module


@pytest.fixture
def assign(db_session, module, department_head):
    def make(user, deadline, **kwargs):
        assignment = TrainingAssignment(
            module_id=module.id,
            assigned_to_user_id=user.id,
            assigned_by_user_id=department_head.id,
            deadline=deadline,
            **kwargs,
        )
        db_session.add(assignment)
        db_session.commit()
        return assignment
    return make


@pytest.fixture
def certify(db_session, module):
    counter = iter(range(1, 100))

    def make(user, expires_at):
        progress = TrainingProgress(
            user_id=user.id,
            module_id=module.id,
            status=TrainingStatus.COMPLETED,
            completed_at=NOW - timedelta(days=300),
        )
        db_session.add(progress)
        db_session.flush()
        certificate = TrainingCertificate(
            progress_id=progress.id,
            user_id=user.id,
            module_id=module.id,
            certificate_no=f"CERT-TEST-{next(counter):04d}",
            expires_at=expires_at,
        )
        db_session.add(certificate)
        db_session.commit()
        return certificate
    return make


class TestDeadlineReminders:
    """Tests for deadline reminders."""

    def test_due_within_a_day(self, db_session, assign, staff_user):
        """Test assignments due in the next 24 hours get one reminder."""
        # Arrange
        assignment = assign(staff_user, NOW + timedelta(hours=12))

        # Act
        result = run_training_notifications(db_session, now=NOW)

        # Assert
        assert result == {"processed": 1, "message": "Training notifications processed"}
        db_session.refresh(assignment)
        assert assignment.reminder_sent is True
        notification = db_session.query(Notification).one()
        assert notification.type == NotificationType.TRAINING_DEADLINE
        assert notification.user_id == staff_user.id
        assert "Guest Data Privacy" in notification.message

    def test_reminder_sent_once(self, db_session, assign, staff_user):
        """Test a second run does not repeat the reminder."""
        # Arrange
        assign(staff_user, NOW + timedelta(hours=12))
        run_training_notifications(db_session, now=NOW)

        # Act
        result = run_training_notifications(db_session, now=NOW + timedelta(hours=1))

        # Assert
        assert result["processed"] == 0

    def test_outside_window_or_done(self, db_session, assign, staff_user):
        """Test later, past, completed and deleted assignments are skipped."""
        # Arrange
        assign(staff_user, NOW + timedelta(days=3))
        assign(staff_user, NOW - timedelta(hours=1))
        assign(staff_user, NOW + timedelta(hours=5), completed_at=NOW - timedelta(hours=1))
        assign(staff_user, NOW + timedelta(hours=5), is_deleted=True)

        # Act
        result = run_training_notifications(db_session, now=NOW)

        # Assert
        assert result["processed"] == 0


class TestCertificateWarnings:
    """Tests for certificate expiry warnings."""

    @pytest.mark.parametrize("days", [30, 7])
    def test_warning_days(self, db_session, certify, staff_user, days):
        """Test warnings fire when exactly 30 or 7 days remain."""
        # Arrange
        certify(staff_user, NOW + timedelta(days=days) - timedelta(hours=2))

        # Act
        result = run_training_notifications(db_session, now=NOW)

        # Assert
        assert result["processed"] == 1
        notification = db_session.query(Notification).one()
        assert notification.type == NotificationType.SYSTEM
        assert f"expires in {days} days" in notification.message

    @pytest.mark.parametrize("days", [29, 14, 8, 1])
    def test_other_days_quiet(self, db_session, certify, staff_user, days):
        """Test no warning on the other days."""
        # Arrange
        certify(staff_user, NOW + timedelta(days=days) - timedelta(hours=2))

        # Act
        result = run_training_notifications(db_session, now=NOW)

        # Assert
        assert result["processed"] == 0

    def test_expired_ignored(self, db_session, certify, staff_user):
        """Test already expired certificates are not warned about."""
        # Arrange
        certify(staff_user, NOW - timedelta(days=7))

        # Act
        result = run_training_notifications(db_session, now=NOW)

        # Assert
        assert result["processed"] == 0


class TestWeeklyReport:
    """Tests for run_weekly_report."""

    def test_head_receives_team_summary(self, db_session, assign, staff_user, department_head):
        """Test the head of a team with activity gets the counts."""
        # Arrange
        assign(staff_user, NOW - timedelta(days=2))
        assign(staff_user, NOW + timedelta(days=3))

        # Act
        result = run_weekly_report(db_session, now=NOW)

        # Assert
        assert result == {"processed": 1, "message": "Manager reports generated"}
        notification = db_session.query(Notification).one()
        assert notification.user_id == department_head.id
        assert notification.title == "Weekly Training Report"
        assert notification.meta == {"completed": 0, "overdue": 1, "due_soon": 1}

    def test_quiet_team_skipped(self, db_session, staff_user, department_head, make_profile, grand_hotel, housekeeping):
        """Test heads of teams with nothing to report are skipped."""
        # Arrange
        make_profile(Role.DEPARTMENT_HEAD, grand_hotel, housekeeping, full_name="Helena Housekeeping")

        # Act
        result = run_weekly_report(db_session, now=NOW)

        # Assert
        assert result["processed"] == 0
        assert db_session.query(Notification).count() == 0

    def test_recent_completions_counted(self, db_session, module, staff_user, department_head):
        """Test completions in the last week count toward the summary."""
        # Arrange
        db_session.add(TrainingProgress(
            user_id=staff_user.id,
            module_id=module.id,
            status=TrainingStatus.COMPLETED,
            completed_at=NOW - timedelta(days=2),
        ))
        db_session.commit()

        # Act
        run_weekly_report(db_session, now=NOW)

        # Assert
        notification = db_session.query(Notification).one()
        assert notification.meta["completed"] == 1
