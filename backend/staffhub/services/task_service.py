"""
Task Service
============

Operational tasks, their status lifecycle, per-user stats and the recurring
task templates consumed by the template job.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from staffhub.core.enums import NotificationType, TaskStatus
from staffhub.core.exceptions import AuthorizationError, NotFoundError, UserNotFoundError
from staffhub.core.logging import get_logger
from staffhub.core.status_transitions import validate_transition
from staffhub.core.tenant.tenant_query import TenantQuery, tenant_query, validate_tenant_access
from staffhub.db.base import as_utc, utcnow
from staffhub.models.role_enum import Role
from staffhub.models.task import Task, TaskTemplate
from staffhub.models.user import Profile
from staffhub.schemas.task import TaskCreate, TaskStatusChange, TaskTemplateCreate, TaskTemplateUpdate, TaskUpdate
from staffhub.services.notification_service import create_notification

logger = get_logger(__name__)

OPEN_TASK_STATUSES = (TaskStatus.OPEN, TaskStatus.IN_PROGRESS, TaskStatus.ON_HOLD)


def _visible_tasks(db: Session, user: Profile):
    query = tenant_query(db, Task, user)
    if user.role == Role.STAFF:
        query = query.filter(or_(Task.assigned_to_id == user.id, Task.created_by_id == user.id))
    return query


def _check_assignee(db: Session, user: Profile, assignee_id: Optional[UUID], property_id) -> None:
    if assignee_id is None:
        return
    assignee = db.get(Profile, assignee_id)
    if assignee is None or not assignee.is_active:
        raise UserNotFoundError(str(assignee_id))
    validate_tenant_access(user, assignee.property_id, resource="tasks")
    if property_id is not None and assignee.property_id != property_id:
        raise AuthorizationError("Assignee belongs to another property")


def _notify_assignee(db: Session, task: Task) -> None:
    if task.assigned_to_id is None or task.assigned_to_id == task.created_by_id:
        return
    create_notification(
        db,
        task.assigned_to_id,
        NotificationType.TASK_ASSIGNED,
        "New Task Assigned",
        task.title,
        link=f"/tasks/{task.id}",
        entity_type="task",
        entity_id=task.id,
    )


def list_tasks(
    db: Session,
    user: Profile,
    status: Optional[TaskStatus] = None,
    assigned_to_me: bool = False,
) -> List[Task]:
    query = _visible_tasks(db, user)
    if status is not None:
        query = query.filter(Task.status == status)
    if assigned_to_me:
        query = query.filter(Task.assigned_to_id == user.id)
    return query.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc()).all()


def get_task(db: Session, user: Profile, task_id: UUID) -> Task:
    task = TenantQuery(db, Task, user).get_by_id(task_id)
    if task is None:
        raise NotFoundError("Task", str(task_id))
    if user.role == Role.STAFF and user.id not in (task.assigned_to_id, task.created_by_id):
        raise AuthorizationError("You do not have access to this task")
    return task


def create_task(db: Session, user: Profile, data: TaskCreate) -> Task:
    property_id = data.property_id or user.property_id
    validate_tenant_access(user, property_id, resource="tasks")
    _check_assignee(db, user, data.assigned_to_id, property_id)

    task = Task(
        title=data.title,
        description=data.description,
        priority=data.priority,
        assigned_to_id=data.assigned_to_id,
        created_by_id=user.id,
        property_id=property_id,
        department_id=data.department_id or user.department_id,
        due_date=data.due_date,
    )
    db.add(task)
    db.flush()
    _notify_assignee(db, task)
    db.commit()

    logger.info("Task created", extra={"task_id": str(task.id), "assigned_to": str(task.assigned_to_id)})
    return task


def update_task(db: Session, user: Profile, task_id: UUID, data: TaskUpdate) -> Task:
    task = get_task(db, user, task_id)
    changes = data.model_dump(exclude_unset=True)

    reassigned = "assigned_to_id" in changes and changes["assigned_to_id"] != task.assigned_to_id
    if reassigned:
        _check_assignee(db, user, changes["assigned_to_id"], task.property_id)

    for field, value in changes.items():
        setattr(task, field, value)

    if reassigned:
        _notify_assignee(db, task)
    db.commit()
    return task


def change_task_status(db: Session, user: Profile, task_id: UUID, data: TaskStatusChange) -> Task:
    task = get_task(db, user, task_id)
    validate_transition("task", task.status, data.status)

    task.status = data.status
    task.completed_at = utcnow() if data.status == TaskStatus.COMPLETED else None
    db.commit()

    logger.info(
        "Task status changed",
        extra={"task_id": str(task.id), "status": data.status.value, "actor_id": str(user.id)}
    )
    return task


def task_stats(db: Session, user: Profile) -> dict:
    """Counts by status plus overdue, over the tasks the user can see."""
    tasks = _visible_tasks(db, user).all()
    now = utcnow()

    by_status = {status.value: 0 for status in TaskStatus}
    overdue = 0
    for task in tasks:
        by_status[task.status.value] += 1
        due = as_utc(task.due_date)
        if task.status in OPEN_TASK_STATUSES and due is not None and due < now:
            overdue += 1

    return {
        "total": len(tasks),
        "by_status": by_status,
        "overdue": overdue,
        "assigned_to_me": sum(1 for t in tasks if t.assigned_to_id == user.id and t.status in OPEN_TASK_STATUSES),
    }


# ==========================
# Templates
# ==========================

def list_templates(db: Session, user: Profile) -> List[TaskTemplate]:
    return tenant_query(db, TaskTemplate, user).order_by(TaskTemplate.title.asc()).all()


def create_template(db: Session, user: Profile, data: TaskTemplateCreate) -> TaskTemplate:
    property_id = data.property_id or user.property_id
    validate_tenant_access(user, property_id, resource="task_templates")
    _check_assignee(db, user, data.assigned_to_id, property_id)

    template = TaskTemplate(
        title=data.title,
        description=data.description,
        priority=data.priority,
        assigned_to_id=data.assigned_to_id,
        property_id=property_id,
        department_id=data.department_id,
        recurrence_type=data.recurrence_type,
        next_run_at=data.next_run_at or utcnow(),
        created_by_id=user.id,
    )
    db.add(template)
    db.commit()
    return template


def update_template(db: Session, user: Profile, template_id: UUID, data: TaskTemplateUpdate) -> TaskTemplate:
    template = TenantQuery(db, TaskTemplate, user).get_by_id(template_id)
    if template is None:
        raise NotFoundError("Task template", str(template_id))

    changes = data.model_dump(exclude_unset=True)
    if "assigned_to_id" in changes:
        _check_assignee(db, user, changes["assigned_to_id"], template.property_id)
    for field, value in changes.items():
        setattr(template, field, value)
    db.commit()
    return template
