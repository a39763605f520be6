"""
Announcement Service
====================

Property-wide or global announcements, optionally targeted to roles and
departments, with read receipts. Critical announcements fan out an in-app
notification to every targeted user.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from staffhub.core.enums import AnnouncementPriority, NotificationType
from staffhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.permissions import has_permission
from staffhub.core.tenant.tenant_query import TenantQuery, validate_tenant_access
from staffhub.db.base import as_utc, utcnow
from staffhub.models.communication import Announcement, AnnouncementRead
from staffhub.models.role_enum import is_regional
from staffhub.models.user import Profile
from staffhub.schemas.communication import AnnouncementCreate, AnnouncementUpdate
from staffhub.services.notification_service import notify_users

logger = get_logger(__name__)


def is_targeted(announcement: Announcement, user: Profile) -> bool:
    """Role and department targeting; empty lists target everyone."""
    roles = announcement.target_roles or []
    if roles and user.role.value not in roles:
        return False
    departments = announcement.target_department_ids or []
    if departments and (user.department_id is None or str(user.department_id) not in departments):
        return False
    return True


def is_live(announcement: Announcement, now: Optional[datetime] = None) -> bool:
    """Not scheduled for later and not expired."""
    now = now or utcnow()
    scheduled_at = as_utc(announcement.scheduled_at)
    expires_at = as_utc(announcement.expires_at)
    if scheduled_at is not None and scheduled_at > now:
        return False
    if expires_at is not None and expires_at <= now:
        return False
    return True


def visible_announcements(db: Session, user: Profile, limit: Optional[int] = None) -> List[Announcement]:
    """
    Live announcements for the user, pinned first then newest.

    Regional roles see every property's announcements and skip targeting.
    """
    query = db.query(Announcement)
    if not is_regional(user.role):
        query = query.filter(
            or_(Announcement.property_id.is_(None), Announcement.property_id == user.property_id)
        )
    rows = query.order_by(Announcement.is_pinned.desc(), Announcement.created_at.desc()).all()

    now = utcnow()
    visible = [
        a for a in rows
        if is_live(a, now) and (is_regional(user.role) or is_targeted(a, user))
    ]
    return visible[:limit] if limit else visible


def list_announcements(db: Session, user: Profile) -> List[dict]:
    announcements = visible_announcements(db, user)
    read_ids = {
        row.announcement_id
        for row in db.query(AnnouncementRead.announcement_id).filter(AnnouncementRead.user_id == user.id).all()
    }
    result = []
    for announcement in announcements:
        data = announcement.to_dict()
        data["is_read"] = announcement.id in read_ids
        result.append(data)
    return result


def _target_users(db: Session, announcement: Announcement) -> List[UUID]:
    query = db.query(Profile).filter(Profile.is_active.is_(True))
    if announcement.property_id is not None:
        query = query.filter(Profile.property_id == announcement.property_id)
    return [p.id for p in query.all() if is_targeted(announcement, p)]


def _fan_out(db: Session, announcement: Announcement) -> int:
    recipients = [uid for uid in _target_users(db, announcement) if uid != announcement.created_by]
    created = notify_users(
        db,
        recipients,
        NotificationType.ANNOUNCEMENT,
        announcement.title,
        announcement.content[:200],
        link=f"/announcements/{announcement.id}",
        entity_type="announcement",
        entity_id=announcement.id,
        metadata={"priority": announcement.priority.value},
    )
    return len(created)


def create_announcement(db: Session, user: Profile, data: AnnouncementCreate) -> Announcement:
    property_id = data.property_id
    if property_id is None and not is_regional(user.role):
        property_id = user.property_id
    if property_id is not None:
        validate_tenant_access(user, property_id, resource="announcements")

    if data.expires_at and data.scheduled_at and data.expires_at <= data.scheduled_at:
        raise ValidationError("expires_at must be after scheduled_at")

    announcement = Announcement(
        title=data.title,
        content=data.content,
        priority=data.priority,
        is_pinned=data.is_pinned,
        property_id=property_id,
        target_roles=[role.value for role in data.target_roles],
        target_department_ids=[str(d) for d in data.target_department_ids],
        scheduled_at=data.scheduled_at,
        expires_at=data.expires_at,
        created_by=user.id,
    )
    db.add(announcement)
    db.flush()

    notified = 0
    if announcement.priority == AnnouncementPriority.CRITICAL and is_live(announcement):
        notified = _fan_out(db, announcement)

    db.commit()

    logger.info(
        "Announcement created",
        extra={"announcement_id": str(announcement.id), "notified": notified}
    )
    return announcement


def _get_editable(db: Session, user: Profile, announcement_id: UUID, action: str) -> Announcement:
    announcement = TenantQuery(db, Announcement, user, include_global=True).get_by_id(announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement", str(announcement_id))
    if announcement.property_id is None and not is_regional(user.role):
        raise AuthorizationError("Only regional roles can change global announcements")
    if announcement.created_by != user.id and not has_permission(user.role, "announcements", action):
        raise AuthorizationError("You cannot change this announcement")
    return announcement


def update_announcement(db: Session, user: Profile, announcement_id: UUID, data: AnnouncementUpdate) -> Announcement:
    announcement = _get_editable(db, user, announcement_id, "update")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field == "target_roles":
            value = [role.value if hasattr(role, "value") else role for role in (value or [])]
        elif field == "target_department_ids":
            value = [str(d) for d in (value or [])]
        setattr(announcement, field, value)

    escalated = (
        changes.get("priority") == AnnouncementPriority.CRITICAL
        and is_live(announcement)
    )
    if escalated:
        db.flush()
        _fan_out(db, announcement)

    db.commit()
    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="announcement",
        entity_id=str(announcement.id),
        action="update",
        changes={k: str(v) for k, v in changes.items()},
    )
    return announcement


def delete_announcement(db: Session, user: Profile, announcement_id: UUID) -> None:
    announcement = _get_editable(db, user, announcement_id, "delete")
    db.delete(announcement)
    db.commit()
    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="announcement",
        entity_id=str(announcement_id),
        action="delete",
    )


def mark_announcement_read(db: Session, user: Profile, announcement_id: UUID) -> AnnouncementRead:
    announcement = TenantQuery(db, Announcement, user, include_global=True).get_by_id(announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement", str(announcement_id))

    existing = (
        db.query(AnnouncementRead)
        .filter(AnnouncementRead.announcement_id == announcement.id, AnnouncementRead.user_id == user.id)
        .first()
    )
    if existing is not None:
        return existing

    receipt = AnnouncementRead(announcement_id=announcement.id, user_id=user.id)
    db.add(receipt)
    db.commit()
    return receipt
