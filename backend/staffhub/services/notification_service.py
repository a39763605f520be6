"""
Notification Service
====================

Creates in-app notifications and serves the notification inbox.

Creation helpers only add rows to the session; the calling service owns
the commit so a notification is persisted together with the change that
caused it.
"""

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import NotificationType
from staffhub.core.exceptions import NotFoundError
from staffhub.core.logging import get_logger
from staffhub.db.base import utcnow
from staffhub.models.notification import Notification
from staffhub.models.user import Profile

logger = get_logger(__name__)


def create_notification(
    db: Session,
    user_id: UUID,
    notification_type: NotificationType,
    title: str,
    message: str,
    link: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        link=link,
        entity_type=entity_type,
        entity_id=entity_id,
        meta=dict(metadata or {}),
    )
    db.add(notification)
    return notification


def notify_users(
    db: Session,
    user_ids: Iterable[Optional[UUID]],
    notification_type: NotificationType,
    title: str,
    message: str,
    **kwargs,
) -> List[Notification]:
    """
    Notify each distinct user once. None entries are ignored.
    """
    created = []
    seen = set()
    for user_id in user_ids:
        if user_id is None or user_id in seen:
            continue
        seen.add(user_id)
        created.append(create_notification(db, user_id, notification_type, title, message, **kwargs))
    return created


# ==========================
# Inbox
# ==========================

def list_notifications(
    db: Session,
    user: Profile,
    unread_only: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    query = db.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "notifications": [n.to_dict() for n in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def unread_count(db: Session, user: Profile) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user.id, Notification.read_at.is_(None))
        .scalar()
        or 0
    )


def _get_own(db: Session, user: Profile, notification_id: UUID) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user.id)
        .first()
    )
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))
    return notification


def mark_read(db: Session, user: Profile, notification_id: UUID) -> Notification:
    notification = _get_own(db, user, notification_id)
    if notification.read_at is None:
        notification.read_at = utcnow()
        db.commit()
    return notification


def mark_all_read(db: Session, user: Profile) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read_at.is_(None))
        .update({Notification.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    logger.info("Notifications marked read", extra={"user_id": str(user.id), "count": updated})
    return updated


def delete_notification(db: Session, user: Profile, notification_id: UUID) -> None:
    notification = _get_own(db, user, notification_id)
    db.delete(notification)
    db.commit()
