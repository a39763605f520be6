"""
Dashboard Service
=================

Stats block for the home dashboard: a personal section for everyone plus a
section for the viewer's scope (department, property or region).
"""

from datetime import datetime, time, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import (
    DocumentStatus,
    LeaveStatus,
    PENDING_REQUEST_STATUSES,
    TaskStatus,
    TicketStatus,
    TrainingStatus,
)
from staffhub.db.base import utcnow
from staffhub.models.communication import AnnouncementRead
from staffhub.models.hr import LeaveRequest
from staffhub.models.knowledge import Document
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.models.organization import Department, Property
from staffhub.models.request import Request
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.task import Task
from staffhub.models.training import TrainingAssignment, TrainingProgress
from staffhub.models.user import Profile
from staffhub.services.announcement_service import visible_announcements
from staffhub.services.knowledge_service import published_documents
from staffhub.services.notification_service import unread_count

CLOSED_TASK_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
CLOSED_TICKET_STATUSES = (TicketStatus.COMPLETED, TicketStatus.CLOSED, TicketStatus.CANCELLED)
PROPERTY_SCOPE_ROLES = (Role.PROPERTY_HR, Role.PROPERTY_MANAGER)
RECENT_ANNOUNCEMENTS = 10


def _count(db: Session, model, *criteria) -> int:
    return db.query(func.count(model.id)).filter(*criteria).scalar() or 0


def training_compliance(db: Session, user_ids: Optional[List[UUID]]) -> int:
    """
    Completed assignments as a percentage of all assignments, capped at 100.

    user_ids None means every user.
    """
    query = db.query(TrainingAssignment).filter(TrainingAssignment.is_deleted.is_(False))
    if user_ids is not None:
        if not user_ids:
            return 0
        query = query.filter(TrainingAssignment.assigned_to_user_id.in_(user_ids))
    total = query.count()
    if total == 0:
        return 0
    completed = query.filter(TrainingAssignment.completed_at.isnot(None)).count()
    return min(round(completed / total * 100), 100)


def _active_member_ids(db: Session, *criteria) -> List[UUID]:
    return [pid for (pid,) in db.query(Profile.id).filter(Profile.is_active.is_(True), *criteria).all()]


def _personal_stats(db: Session, user: Profile) -> dict:
    progress = (
        db.query(TrainingProgress.status, func.count(TrainingProgress.id))
        .filter(TrainingProgress.user_id == user.id)
        .group_by(TrainingProgress.status)
        .all()
    )
    by_status = {status: count for status, count in progress}

    recent = visible_announcements(db, user, limit=RECENT_ANNOUNCEMENTS)
    read_ids = {
        row.announcement_id
        for row in db.query(AnnouncementRead.announcement_id).filter(AnnouncementRead.user_id == user.id).all()
    }

    return {
        "documents_count": published_documents(db, user).count(),
        "completed_training": by_status.get(TrainingStatus.COMPLETED, 0),
        "in_progress_training": by_status.get(TrainingStatus.IN_PROGRESS, 0),
        "unread_announcements": sum(1 for a in recent if a.id not in read_ids),
        "pending_approvals": _count(
            db, Request,
            Request.current_assignee_id == user.id,
            Request.status.in_(PENDING_REQUEST_STATUSES),
        ),
        "open_tasks": _count(
            db, Task,
            Task.assigned_to_id == user.id,
            Task.status.notin_(CLOSED_TASK_STATUSES),
        ),
        "unread_notifications": unread_count(db, user),
    }


def _department_stats(db: Session, department_id: UUID) -> dict:
    members = _active_member_ids(db, Profile.department_id == department_id)
    return {
        "scope": "department",
        "department_id": str(department_id),
        "total_staff": len(members),
        "training_compliance": training_compliance(db, members),
        "pending_leave_requests": _count(
            db, LeaveRequest,
            LeaveRequest.department_id == department_id,
            LeaveRequest.status == LeaveStatus.PENDING,
        ),
    }


def _property_stats(db: Session, property_id: UUID) -> dict:
    members = _active_member_ids(db, Profile.property_id == property_id)
    month_start = datetime.combine(utcnow().date().replace(day=1), time.min, tzinfo=timezone.utc)

    return {
        "scope": "property",
        "property_id": str(property_id),
        "total_staff": len(members),
        "active_departments": _count(
            db, Department, Department.property_id == property_id, Department.is_active.is_(True)
        ),
        "pending_tasks": _count(
            db, Task, Task.property_id == property_id, Task.status.notin_(CLOSED_TASK_STATUSES)
        ),
        "maintenance_issues": _count(
            db, MaintenanceTicket,
            MaintenanceTicket.property_id == property_id,
            MaintenanceTicket.status.notin_(CLOSED_TICKET_STATUSES),
        ),
        "pending_leave_requests": _count(
            db, LeaveRequest, LeaveRequest.property_id == property_id, LeaveRequest.status == LeaveStatus.PENDING
        ),
        "new_hires_this_month": _count(
            db, Profile, Profile.property_id == property_id, Profile.created_at >= month_start
        ),
        "training_compliance": training_compliance(db, members),
    }


def _regional_stats(db: Session) -> dict:
    return {
        "scope": "region",
        "total_properties": _count(db, Property, Property.is_active.is_(True)),
        "total_staff": _count(db, Profile, Profile.is_active.is_(True)),
        "open_tasks": _count(db, Task, Task.status.notin_(CLOSED_TASK_STATUSES)),
        "open_maintenance_tickets": _count(
            db, MaintenanceTicket, MaintenanceTicket.status.notin_(CLOSED_TICKET_STATUSES)
        ),
        "pending_requests": _count(db, Request, Request.status.in_(PENDING_REQUEST_STATUSES)),
        "documents_pending_review": _count(db, Document, Document.status == DocumentStatus.PENDING_REVIEW),
        "training_compliance": training_compliance(db, None),
    }


def dashboard_stats(db: Session, user: Profile) -> dict:
    """
    Personal stats plus the scope block for the viewer's role:
    department heads get their department, property roles their property,
    regional roles the whole region. Staff get no scope block.
    """
    scope = None
    if is_regional(user.role):
        scope = _regional_stats(db)
    elif user.role in PROPERTY_SCOPE_ROLES and user.property_id is not None:
        scope = _property_stats(db, user.property_id)
    elif user.role == Role.DEPARTMENT_HEAD and user.department_id is not None:
        scope = _department_stats(db, user.department_id)

    return {
        "role": user.role.value,
        "personal": _personal_stats(db, user),
        "scope": scope,
    }
