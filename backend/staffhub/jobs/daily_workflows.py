"""
Daily Workflows Job
===================

Runs the daily reminder workflows:

- notify_overdue_tasks: tells assignees about open tasks past their due
  date, at most once per task per UTC day.
- send_training_reminders: warns assignees 3 days and 1 day before a
  training deadline, once per threshold.

Sent reminders are recorded as ScheduledReminder rows. A failing workflow is
reported in the results and the others still run.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from staffhub.core.enums import NotificationType, ReminderType, TaskStatus
from staffhub.core.logging import audit_logger, get_logger, log_execution_time
from staffhub.db.base import as_utc, utcnow
from staffhub.models.notification import ScheduledReminder
from staffhub.models.task import Task
from staffhub.models.training import TrainingAssignment
from staffhub.services.notification_service import create_notification

logger = get_logger(__name__)

OVERDUE_TASK_STATUSES = (TaskStatus.OPEN, TaskStatus.IN_PROGRESS)

# Ascending; an assignment gets the tightest threshold it has reached
TRAINING_REMINDER_DAYS: Tuple[Tuple[int, ReminderType], ...] = (
    (1, ReminderType.ONE_DAY_BEFORE),
    (3, ReminderType.THREE_DAYS_BEFORE),
)


def _end_of_day(now: datetime, days_ahead: int) -> datetime:
    return datetime.combine(now.date() + timedelta(days=days_ahead), time.max, tzinfo=timezone.utc)


def _reminder_sent(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    user_id: UUID,
    reminder_type: ReminderType,
    since: Optional[datetime] = None,
) -> bool:
    query = db.query(ScheduledReminder.id).filter(
        ScheduledReminder.entity_type == entity_type,
        ScheduledReminder.entity_id == entity_id,
        ScheduledReminder.user_id == user_id,
        ScheduledReminder.reminder_type == reminder_type,
        ScheduledReminder.status == "sent",
    )
    if since is not None:
        query = query.filter(ScheduledReminder.sent_at >= since)
    return query.first() is not None


def _record_reminder(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    user_id: UUID,
    reminder_type: ReminderType,
    now: datetime,
) -> None:
    db.add(ScheduledReminder(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        reminder_type=reminder_type,
        scheduled_for=now,
        sent_at=now,
        status="sent",
    ))


def notify_overdue_tasks(db: Session, now: datetime) -> dict:
    day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    tasks = (
        db.query(Task)
        .filter(
            Task.status.in_(OVERDUE_TASK_STATUSES),
            Task.assigned_to_id.isnot(None),
            Task.due_date.isnot(None),
            Task.due_date < now,
        )
        .order_by(Task.due_date.asc())
        .all()
    )

    notified = 0
    for task in tasks:
        if _reminder_sent(db, "task", task.id, task.assigned_to_id, ReminderType.OVERDUE_DAILY, since=day_start):
            continue
        create_notification(
            db,
            task.assigned_to_id,
            NotificationType.TASK_OVERDUE,
            "Task Overdue",
            f'Your task "{task.title}" is overdue. Please complete it as soon as possible.',
            link="/tasks",
            entity_type="task",
            entity_id=task.id,
            metadata={"due_date": as_utc(task.due_date).isoformat()},
        )
        _record_reminder(db, "task", task.id, task.assigned_to_id, ReminderType.OVERDUE_DAILY, now)
        notified += 1
    return {"tasks_notified": notified}


def _threshold_for(deadline: datetime, now: datetime) -> Optional[Tuple[int, ReminderType]]:
    for days, reminder_type in TRAINING_REMINDER_DAYS:
        if deadline <= _end_of_day(now, days):
            return days, reminder_type
    return None


def send_training_reminders(db: Session, now: datetime) -> dict:
    horizon = _end_of_day(now, TRAINING_REMINDER_DAYS[-1][0])
    assignments = (
        db.query(TrainingAssignment)
        .filter(
            TrainingAssignment.deadline.isnot(None),
            TrainingAssignment.deadline >= now,
            TrainingAssignment.deadline <= horizon,
            TrainingAssignment.completed_at.is_(None),
            TrainingAssignment.is_deleted.is_(False),
            TrainingAssignment.assigned_to_user_id.isnot(None),
        )
        .all()
    )

    sent = 0
    for assignment in assignments:
        threshold = _threshold_for(as_utc(assignment.deadline), now)
        if threshold is None:
            continue
        days, reminder_type = threshold
        user_id = assignment.assigned_to_user_id
        if _reminder_sent(db, "training_assignment", assignment.id, user_id, reminder_type):
            continue

        title = assignment.module.title if assignment.module else "Training Module"
        create_notification(
            db,
            user_id,
            NotificationType.TRAINING_DEADLINE,
            "Training Deadline Approaching",
            f'Your training "{title}" is due in {days} day{"s" if days > 1 else ""}. Please complete it soon.',
            link="/training/assignments",
            entity_type="training_assignment",
            entity_id=assignment.id,
            metadata={"days_remaining": days},
        )
        _record_reminder(db, "training_assignment", assignment.id, user_id, reminder_type, now)
        sent += 1
    return {"reminders_sent": sent}


DAILY_WORKFLOWS: List[Tuple[str, Callable[[Session, datetime], dict]]] = [
    ("notify_overdue_tasks", notify_overdue_tasks),
    ("send_training_reminders", send_training_reminders),
]


@log_execution_time(logger, "daily_workflows")
def run_daily_workflows(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Returns:
        {success, executed, results} with one result per workflow
    """
    now = now or utcnow()
    results = []
    for name, workflow in DAILY_WORKFLOWS:
        try:
            outcome = workflow(db, now)
            db.commit()
            results.append({"workflow": name, "status": "completed", "result": outcome})
        except Exception as e:
            db.rollback()
            logger.error("Daily workflow failed", extra={"workflow": name, "error": str(e)})
            results.append({"workflow": name, "status": "failed", "error": str(e)})

    result = {"success": True, "executed": len(results), "results": results}
    audit_logger.log_job_run("daily_workflows", {"executed": len(results)})
    return result
