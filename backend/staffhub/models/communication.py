"""
Communication Models
====================

Announcements (property-wide or global, optionally role / department
targeted), their read receipts, and direct or broadcast messages.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text, JSON, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from staffhub.core.enums import AnnouncementPriority, MessageStatus, MessageType
from staffhub.db.base import Base, enum_column, utcnow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Announcement(Base):
    """Announcement; property_id NULL targets every property."""

    __tablename__ = "announcements"

    def __init__(self, **kwargs):
        kwargs.setdefault("priority", AnnouncementPriority.NORMAL)
        kwargs.setdefault("is_pinned", False)
        kwargs.setdefault("target_roles", [])
        kwargs.setdefault("target_department_ids", [])
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[AnnouncementPriority] = mapped_column(
        enum_column(AnnouncementPriority),
        nullable=False,
        default=AnnouncementPriority.NORMAL,
    )
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    target_roles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    target_department_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "content": self.content,
            "priority": self.priority.value,
            "is_pinned": self.is_pinned,
            "property_id": str(self.property_id) if self.property_id else None,
            "target_roles": list(self.target_roles or []),
            "target_department_ids": list(self.target_department_ids or []),
            "scheduled_at": _iso(self.scheduled_at),
            "expires_at": _iso(self.expires_at),
            "created_by": str(self.created_by) if self.created_by else None,
            "created_at": _iso(self.created_at),
        }


class AnnouncementRead(Base):
    """Read receipt for an announcement."""

    __tablename__ = "announcement_reads"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    announcement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("announcement_id", "user_id", name="uq_announcement_read_user"),
    )


class Message(Base):
    """Direct message between profiles, or a broadcast with no recipient."""

    __tablename__ = "messages"

    def __init__(self, **kwargs):
        kwargs.setdefault("message_type", MessageType.DIRECT)
        kwargs.setdefault("status", MessageStatus.SENT)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    sender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recipient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
    )
    subject: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[MessageType] = mapped_column(enum_column(MessageType), nullable=False, default=MessageType.DIRECT)
    status: Mapped[MessageStatus] = mapped_column(enum_column(MessageStatus), nullable=False, default=MessageStatus.SENT)
    parent_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_messages_recipient_status", "recipient_id", "status"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "sender_id": str(self.sender_id),
            "recipient_id": str(self.recipient_id) if self.recipient_id else None,
            "property_id": str(self.property_id) if self.property_id else None,
            "subject": self.subject,
            "body": self.body,
            "message_type": self.message_type.value,
            "status": self.status.value,
            "parent_message_id": str(self.parent_message_id) if self.parent_message_id else None,
            "read_at": _iso(self.read_at),
            "created_at": _iso(self.created_at),
        }
