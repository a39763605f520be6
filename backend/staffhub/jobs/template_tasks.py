"""
Recurring Task Generation Job
=============================

Turns every active TaskTemplate whose next_run_at has passed into a Task and
schedules the template's next run.
"""

import calendar
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from staffhub.core.config import settings
from staffhub.core.enums import RecurrenceType, TaskStatus
from staffhub.core.logging import audit_logger, get_logger, log_execution_time
from staffhub.db.base import utcnow
from staffhub.models.task import Task, TaskTemplate

logger = get_logger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    """Same day next month, clamped to the last day of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_run_after(recurrence: RecurrenceType, now: datetime) -> datetime:
    if recurrence == RecurrenceType.DAILY:
        return now + timedelta(days=1)
    if recurrence == RecurrenceType.WEEKLY:
        return now + timedelta(weeks=1)
    return add_months(now, 1)


def _system_user_id() -> Optional[UUID]:
    return UUID(settings.SYSTEM_USER_ID) if settings.SYSTEM_USER_ID else None


@log_execution_time(logger, "template_task_generation")
def run_template_tasks(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Returns:
        {success, processed, results} with one result per due template
    """
    now = now or utcnow()
    templates = (
        db.query(TaskTemplate)
        .filter(
            TaskTemplate.is_active.is_(True),
            TaskTemplate.next_run_at.isnot(None),
            TaskTemplate.next_run_at <= now,
        )
        .order_by(TaskTemplate.next_run_at.asc())
        .all()
    )

    results = []
    for template in templates:
        template_id = str(template.id)
        try:
            task = Task(
                title=template.title,
                description=template.description,
                status=TaskStatus.OPEN,
                priority=template.priority,
                assigned_to_id=template.assigned_to_id,
                created_by_id=template.created_by_id or _system_user_id(),
                property_id=template.property_id,
                department_id=template.department_id,
                due_date=now + timedelta(days=1),
                template_id=template.id,
            )
            db.add(task)
            template.last_run_at = now
            template.next_run_at = next_run_after(template.recurrence_type, now)
            db.commit()
            results.append({"template_id": template_id, "status": "success", "task_id": str(task.id)})
        except Exception as e:
            db.rollback()
            logger.error(
                "Template task generation failed",
                extra={"template_id": template_id, "error": str(e)}
            )
            results.append({"template_id": template_id, "status": "failed", "error": str(e)})

    result = {"success": True, "processed": len(templates), "results": results}
    audit_logger.log_job_run("template_task_generation", {"processed": len(templates)})
    return result
