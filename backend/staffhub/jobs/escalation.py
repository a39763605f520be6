"""
Approval Escalation Job
=======================

Escalates document approvals and leave requests that have been pending
longer than ESCALATION_TIMEOUT_HOURS. Each item is escalated at most once
per UTC day, tracked through ScheduledReminder rows.
"""

from datetime import datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from staffhub.core.config import settings
from staffhub.core.enums import ApprovalStatus, LeaveStatus, NotificationType, ReminderType
from staffhub.core.logging import audit_logger, get_logger, log_execution_time
from staffhub.db.base import utcnow
from staffhub.models.hr import LeaveRequest
from staffhub.models.knowledge import DocumentApproval
from staffhub.models.notification import ScheduledReminder
from staffhub.models.role_enum import Role
from staffhub.models.user import Profile
from staffhub.services.notification_service import notify_users

logger = get_logger(__name__)

LEAVE_ESCALATION_ROLES = (Role.REGIONAL_ADMIN, Role.REGIONAL_HR, Role.PROPERTY_MANAGER)


def _escalated_today(db: Session, entity_type: str, entity_id: UUID, now: datetime) -> bool:
    day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    return (
        db.query(ScheduledReminder.id)
        .filter(
            ScheduledReminder.entity_type == entity_type,
            ScheduledReminder.entity_id == entity_id,
            ScheduledReminder.reminder_type == ReminderType.ESCALATION,
            ScheduledReminder.sent_at >= day_start,
        )
        .first()
        is not None
    )


def _users_with_roles(db: Session, roles) -> List[UUID]:
    return [
        uid for (uid,) in db.query(Profile.id)
        .filter(Profile.role.in_(roles), Profile.is_active.is_(True))
        .order_by(Profile.created_at.asc())
        .all()
    ]


def _record_escalation(db: Session, entity_type: str, entity_id: UUID, user_id: UUID, now: datetime) -> None:
    db.add(ScheduledReminder(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        reminder_type=ReminderType.ESCALATION,
        scheduled_for=now,
        sent_at=now,
        status="sent",
    ))


def _escalate_document_approvals(db: Session, cutoff: datetime, now: datetime, hours: int) -> int:
    escalated = 0
    approvals = (
        db.query(DocumentApproval)
        .filter(DocumentApproval.status == ApprovalStatus.PENDING, DocumentApproval.created_at < cutoff)
        .all()
    )
    for approval in approvals:
        if _escalated_today(db, "document_approval", approval.id, now):
            continue
        approvers = _users_with_roles(db, (approval.approver_role,))
        if not approvers:
            continue

        title = approval.document.title if approval.document else "Untitled"
        notify_users(
            db,
            approvers,
            NotificationType.APPROVAL_REQUIRED,
            "Approval Overdue - Escalated",
            f'Document "{title}" has been pending approval for over {hours} hours. Please review urgently.',
            link="/approvals",
            entity_type="document",
            entity_id=approval.document_id,
            metadata={"escalated": True, "hours_pending": hours},
        )
        _record_escalation(db, "document_approval", approval.id, approvers[0], now)
        escalated += len(approvers)
    return escalated


def _escalate_leave_requests(db: Session, cutoff: datetime, now: datetime, hours: int) -> int:
    escalated = 0
    rows = (
        db.query(LeaveRequest, Profile.full_name)
        .join(Profile, Profile.id == LeaveRequest.requester_id)
        .filter(LeaveRequest.status == LeaveStatus.PENDING, LeaveRequest.created_at < cutoff)
        .all()
    )
    managers = _users_with_roles(db, LEAVE_ESCALATION_ROLES)
    if not managers:
        return 0

    for leave, requester_name in rows:
        if _escalated_today(db, "leave_request", leave.id, now):
            continue
        notify_users(
            db,
            managers,
            NotificationType.APPROVAL_REQUIRED,
            "Leave Request Overdue - Escalated",
            f"Leave request from {requester_name} has been pending for over {hours} hours. Please review urgently.",
            link="/approvals",
            entity_type="leave_request",
            entity_id=leave.id,
            metadata={"escalated": True, "hours_pending": hours},
        )
        _record_escalation(db, "leave_request", leave.id, managers[0], now)
        escalated += len(managers)
    return escalated


@log_execution_time(logger, "approval_escalation")
def run_approval_escalation(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Returns:
        {success, approvals_escalated}, counting one per notified user
    """
    now = now or utcnow()
    hours = settings.ESCALATION_TIMEOUT_HOURS
    cutoff = now - timedelta(hours=hours)

    total = _escalate_document_approvals(db, cutoff, now, hours)
    db.flush()
    total += _escalate_leave_requests(db, cutoff, now, hours)
    db.commit()

    result = {"success": True, "approvals_escalated": total}
    audit_logger.log_job_run("approval_escalation", result)
    return result
