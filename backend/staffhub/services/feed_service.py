"""
Feed Service
============

Builds the staff activity feed from announcements, published SOPs and
documents, the user's open tasks and training, and today's birthdays.
"""

from datetime import datetime, time, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from staffhub.core.enums import DocumentType, TaskStatus
from staffhub.db.base import as_utc, utcnow
from staffhub.models.knowledge import Document
from staffhub.models.task import Task
from staffhub.models.training import TrainingAssignment
from staffhub.models.user import Profile
from staffhub.services.announcement_service import visible_announcements
from staffhub.services.knowledge_service import published_documents

ANNOUNCEMENT_LIMIT = 5
SOP_LIMIT = 5
DOCUMENT_LIMIT = 2
TASK_LIMIT = 3
TRAINING_LIMIT = 3

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _timestamp(value: Optional[datetime]) -> datetime:
    return as_utc(value) or EPOCH


def merge_feed_items(*sources: Iterable[dict]) -> List[dict]:
    """Flatten the sources and order newest first by timestamp."""
    items = [item for source in sources for item in source]
    return sorted(items, key=lambda item: _timestamp(item["timestamp"]), reverse=True)


def _item(item_id: str, kind: str, title: str, content: str, timestamp, link: str, **extra) -> dict:
    item = {
        "id": item_id,
        "type": kind,
        "title": title,
        "content": content,
        "timestamp": _timestamp(timestamp),
        "link": link,
    }
    item.update(extra)
    return item


def _announcement_items(db: Session, user: Profile) -> List[dict]:
    return [
        _item(
            f"ann-{a.id}", "announcement", a.title, a.content, a.created_at, f"/announcements/{a.id}",
            priority=a.priority.value,
            author_id=str(a.created_by) if a.created_by else None,
        )
        for a in sorted(visible_announcements(db, user), key=lambda a: _timestamp(a.created_at), reverse=True)[:ANNOUNCEMENT_LIMIT]
    ]


def _document_items(db: Session, user: Profile) -> List[dict]:
    newest = Document.published_at.desc()
    sops = (
        published_documents(db, user)
        .filter(Document.doc_type == DocumentType.SOP)
        .order_by(newest, Document.created_at.desc())
        .limit(SOP_LIMIT)
        .all()
    )
    others = (
        published_documents(db, user)
        .filter(Document.doc_type != DocumentType.SOP)
        .order_by(newest, Document.created_at.desc())
        .limit(DOCUMENT_LIMIT)
        .all()
    )

    items = [
        _item(
            f"sop-{d.id}", "sop_update", f"New SOP Published: {d.title or 'Untitled Document'}",
            d.description or "A new standard operating procedure has been published.",
            d.published_at or d.created_at, f"/sops/{d.id}",
            tags=["SOP", d.category] if d.category else ["SOP"],
        )
        for d in sops
    ]
    items.extend(
        _item(
            f"doc-{d.id}", "sop_update", f"New Document: {d.title}",
            d.description or "A new document has been published.",
            d.published_at or d.created_at, f"/documents/{d.id}",
            tags=[d.category] if d.category else [],
        )
        for d in others
    )
    return items


def _task_items(db: Session, user: Profile) -> List[dict]:
    tasks = (
        db.query(Task)
        .filter(
            Task.assigned_to_id == user.id,
            Task.status.notin_((TaskStatus.COMPLETED, TaskStatus.CANCELLED)),
        )
        .order_by(Task.due_date.is_(None), Task.due_date.asc())
        .limit(TASK_LIMIT)
        .all()
    )
    return [
        _item(
            f"task-{t.id}", "task", f"Task Due: {t.title}", t.description or "You have a pending task.",
            t.created_at, f"/tasks/{t.id}",
            priority=t.priority.value,
            due_date=t.due_date.isoformat() if t.due_date else None,
        )
        for t in tasks
    ]


def _training_items(db: Session, user: Profile) -> List[dict]:
    assignments = (
        db.query(TrainingAssignment)
        .filter(
            TrainingAssignment.assigned_to_user_id == user.id,
            TrainingAssignment.completed_at.is_(None),
            TrainingAssignment.is_deleted.is_(False),
        )
        .order_by(TrainingAssignment.created_at.desc())
        .limit(TRAINING_LIMIT)
        .all()
    )
    return [
        _item(
            f"train-{a.id}", "training", f"Training Assigned: {a.module.title}",
            "Please complete this training module.",
            a.created_at, f"/training/modules/{a.module_id}",
            deadline=a.deadline.isoformat() if a.deadline else None,
        )
        for a in assignments
    ]


def _birthday_items(db: Session, user: Profile) -> List[dict]:
    if user.property_id is None:
        return []
    now = utcnow()
    today = now.date()
    midnight = datetime.combine(today, time.min, tzinfo=timezone.utc)

    colleagues = (
        db.query(Profile)
        .filter(
            Profile.property_id == user.property_id,
            Profile.is_active.is_(True),
            Profile.date_of_birth.isnot(None),
        )
        .all()
    )
    return [
        _item(
            f"bday-{p.id}", "birthday", f"Happy Birthday, {p.full_name}!",
            f"Wish {p.full_name} a happy birthday today.", midnight, f"/users/{p.id}",
        )
        for p in colleagues
        if (p.date_of_birth.month, p.date_of_birth.day) == (today.month, today.day)
    ]


def build_staff_feed(db: Session, user: Profile) -> List[dict]:
    return merge_feed_items(
        _announcement_items(db, user),
        _document_items(db, user),
        _task_items(db, user),
        _training_items(db, user),
        _birthday_items(db, user),
    )
