"""
Task Routes
===========

Operational tasks and the recurring templates that generate them.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_permission
from staffhub.core.enums import TaskStatus
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import (
    ErrorResponse,
    TaskCreate,
    TaskStatusChange,
    TaskTemplateCreate,
    TaskTemplateUpdate,
    TaskUpdate,
)
from staffhub.services import task_service

require_task_author = require_permission("tasks", "create")

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    },
)


@router.get("", summary="List Tasks")
def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    assigned_to_me: bool = Query(False),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    tasks = task_service.list_tasks(db, current_user, status, assigned_to_me)
    return {"tasks": [t.to_dict() for t in tasks], "total": len(tasks)}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Task")
def create_task(
    data: TaskCreate,
    current_user: Profile = Depends(require_task_author),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.create_task(db, current_user, data).to_dict()


@router.get("/stats", summary="Task Stats")
def task_stats(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.task_stats(db, current_user)


# =====================================================
# TEMPLATES
# =====================================================

@router.get("/templates", summary="List Task Templates")
def list_templates(
    current_user: Profile = Depends(require_task_author),
    db: Session = Depends(get_db),
) -> dict:
    templates = task_service.list_templates(db, current_user)
    return {"templates": [t.to_dict() for t in templates], "total": len(templates)}


@router.post(
    "/templates",
    status_code=status.HTTP_201_CREATED,
    summary="Create Task Template",
    description="Recurring template. The generate-template-tasks job creates a task each time next_run_at passes.",
)
def create_template(
    data: TaskTemplateCreate,
    current_user: Profile = Depends(require_task_author),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.create_template(db, current_user, data).to_dict()


@router.patch("/templates/{template_id}", summary="Update Task Template")
def update_template(
    template_id: UUID,
    data: TaskTemplateUpdate,
    current_user: Profile = Depends(require_task_author),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.update_template(db, current_user, template_id, data).to_dict()


# =====================================================
# SINGLE TASK
# =====================================================

@router.get(
    "/{task_id}",
    summary="Get Task",
    responses={404: {"model": ErrorResponse, "description": "Task not found"}},
)
def get_task(
    task_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.get_task(db, current_user, task_id).to_dict()


@router.patch("/{task_id}", summary="Update Task")
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    current_user: Profile = Depends(require_task_author),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.update_task(db, current_user, task_id, data).to_dict()


@router.post(
    "/{task_id}/status",
    summary="Change Task Status",
    responses={400: {"model": ErrorResponse, "description": "Invalid status transition"}},
)
def change_status(
    task_id: UUID,
    data: TaskStatusChange,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return task_service.change_task_status(db, current_user, task_id, data).to_dict()
