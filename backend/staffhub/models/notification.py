"""
Notification Models
===================

In-app notifications, bulk fan-out batches with their queue items, the
transactional email outbox and the scheduled reminder ledger used to keep
escalations idempotent within a day.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, Text, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from staffhub.core.enums import (
    BatchStatus,
    EmailStatus,
    NotificationType,
    QueueItemStatus,
    ReminderType,
)
from staffhub.db.base import Base, enum_column, utcnow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Notification(Base):
    """In-app notification for a single profile."""

    __tablename__ = "notifications"

    def __init__(self, **kwargs):
        if "meta" not in kwargs:
            kwargs["meta"] = {}
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[NotificationType] = mapped_column(enum_column(NotificationType), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read_at"),
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "link": self.link,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "metadata": dict(self.meta or {}),
            "is_read": self.is_read,
            "read_at": _iso(self.read_at),
            "created_at": _iso(self.created_at),
        }


class NotificationBatch(Base):
    """A bulk fan-out job (e.g. training assigned to a whole property)."""

    __tablename__ = "notification_batches"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", BatchStatus.PENDING)
        kwargs.setdefault("processed_count", 0)
        kwargs.setdefault("failed_count", 0)
        kwargs.setdefault("meta", {})
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    job_type: Mapped[str] = mapped_column(String(100), nullable=False)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[BatchStatus] = mapped_column(enum_column(BatchStatus), nullable=False, default=BatchStatus.PENDING)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "job_type": self.job_type,
            "total_count": self.total_count,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "status": self.status.value,
            "metadata": dict(self.meta or {}),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
        }


class NotificationQueueItem(Base):
    """One pending notification inside a batch."""

    __tablename__ = "notification_queue"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", QueueItemStatus.PENDING)
        kwargs.setdefault("attempts", 0)
        kwargs.setdefault("max_attempts", 3)
        kwargs.setdefault("notification_data", {})
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("notification_batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_type: Mapped[NotificationType] = mapped_column(enum_column(NotificationType), nullable=False)
    notification_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[QueueItemStatus] = mapped_column(
        enum_column(QueueItemStatus),
        nullable=False,
        default=QueueItemStatus.PENDING,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_notification_queue_batch_status", "batch_id", "status"),
    )


class EmailOutbox(Base):
    """Transactional email waiting to be handed to the email API."""

    __tablename__ = "email_outbox"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", EmailStatus.PENDING)
        kwargs.setdefault("attempts", 0)
        kwargs.setdefault("max_attempts", 3)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    to_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    template: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[EmailStatus] = mapped_column(enum_column(EmailStatus), nullable=False, default=EmailStatus.PENDING)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_message_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "to_email": self.to_email,
            "subject": self.subject,
            "template": self.template,
            "status": self.status.value,
            "attempts": self.attempts,
            "error_message": self.error_message,
            "sent_at": _iso(self.sent_at),
        }


class ScheduledReminder(Base):
    """Ledger of reminders/escalations already sent for an entity."""

    __tablename__ = "scheduled_reminders"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    reminder_type: Mapped[ReminderType] = mapped_column(enum_column(ReminderType), nullable=False)
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="sent")

    __table_args__ = (
        Index("ix_scheduled_reminders_entity", "entity_type", "entity_id", "reminder_type"),
    )
