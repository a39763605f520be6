"""
Training Notification Jobs
==========================

Daily deadline reminders and certificate expiry warnings, plus the weekly
team summary sent to department heads.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import NotificationType, TrainingStatus
from staffhub.core.logging import audit_logger, get_logger, log_execution_time
from staffhub.db.base import as_utc, utcnow
from staffhub.models.role_enum import Role
from staffhub.models.training import TrainingAssignment, TrainingCertificate, TrainingProgress
from staffhub.models.user import Profile
from staffhub.services.notification_service import create_notification

logger = get_logger(__name__)

CERTIFICATE_WARNING_DAYS = (30, 7)
REPORT_WINDOW = timedelta(days=7)


def _deadline_reminders(db: Session, now: datetime) -> int:
    assignments = (
        db.query(TrainingAssignment)
        .filter(
            TrainingAssignment.deadline >= now,
            TrainingAssignment.deadline <= now + timedelta(hours=24),
            TrainingAssignment.reminder_sent.is_(False),
            TrainingAssignment.is_deleted.is_(False),
            TrainingAssignment.completed_at.is_(None),
            TrainingAssignment.assigned_to_user_id.isnot(None),
        )
        .all()
    )
    for assignment in assignments:
        create_notification(
            db,
            assignment.assigned_to_user_id,
            NotificationType.TRAINING_DEADLINE,
            "Training Due Soon",
            f'Your training "{assignment.module.title}" is due on {as_utc(assignment.deadline).date().isoformat()}.',
            link="/training/assignments",
            entity_type="training_assignment",
            entity_id=assignment.id,
        )
        assignment.reminder_sent = True
    return len(assignments)


def _certificate_warnings(db: Session, now: datetime) -> int:
    sent = 0
    certificates = (
        db.query(TrainingCertificate)
        .filter(TrainingCertificate.expires_at.isnot(None), TrainingCertificate.expires_at > now)
        .all()
    )
    for certificate in certificates:
        days_left = math.ceil((as_utc(certificate.expires_at) - now).total_seconds() / 86400)
        if days_left not in CERTIFICATE_WARNING_DAYS:
            continue
        create_notification(
            db,
            certificate.user_id,
            NotificationType.SYSTEM,
            "Certificate Expiring",
            f'Your certificate for "{certificate.module.title}" expires in {days_left} days. '
            "Please retake the training.",
            link="/training/certificates",
            entity_type="training_certificate",
            entity_id=certificate.id,
        )
        sent += 1
    return sent


@log_execution_time(logger, "training_notifications")
def run_training_notifications(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    processed = _deadline_reminders(db, now) + _certificate_warnings(db, now)
    db.commit()

    result = {"processed": processed, "message": "Training notifications processed"}
    audit_logger.log_job_run("training_notifications", result)
    return result


def _team_summary(db: Session, department_id, now: datetime) -> dict:
    members = [
        pid for (pid,) in db.query(Profile.id)
        .filter(Profile.department_id == department_id, Profile.is_active.is_(True))
        .all()
    ]
    if not members:
        return {"completed": 0, "overdue": 0, "due_soon": 0}

    open_assignments = db.query(func.count(TrainingAssignment.id)).filter(
        TrainingAssignment.assigned_to_user_id.in_(members),
        TrainingAssignment.completed_at.is_(None),
        TrainingAssignment.is_deleted.is_(False),
    )
    return {
        "completed": db.query(func.count(TrainingProgress.id)).filter(
            TrainingProgress.user_id.in_(members),
            TrainingProgress.status == TrainingStatus.COMPLETED,
            TrainingProgress.completed_at >= now - REPORT_WINDOW,
        ).scalar() or 0,
        "overdue": open_assignments.filter(TrainingAssignment.deadline < now).scalar() or 0,
        "due_soon": open_assignments.filter(
            TrainingAssignment.deadline >= now,
            TrainingAssignment.deadline <= now + REPORT_WINDOW,
        ).scalar() or 0,
    }


@log_execution_time(logger, "weekly_training_report")
def run_weekly_report(db: Session, now: Optional[datetime] = None) -> dict:
    """Notify each department head with a team summary; quiet weeks are skipped."""
    now = now or utcnow()
    heads = (
        db.query(Profile)
        .filter(
            Profile.role == Role.DEPARTMENT_HEAD,
            Profile.is_active.is_(True),
            Profile.department_id.isnot(None),
        )
        .all()
    )

    processed = 0
    for head in heads:
        summary = _team_summary(db, head.department_id, now)
        if not any(summary.values()):
            continue
        create_notification(
            db,
            head.id,
            NotificationType.SYSTEM,
            "Weekly Training Report",
            f"Team Update: {summary['completed']} completed, {summary['overdue']} overdue, "
            f"{summary['due_soon']} due soon.",
            link="/dashboard",
            metadata=summary,
        )
        processed += 1

    db.commit()

    result = {"processed": processed, "message": "Manager reports generated"}
    audit_logger.log_job_run("weekly_training_report", result)
    return result
