"""
Training Models
===============

Learning modules, per-user assignments with deadlines, progress records and
the certificates issued on completion.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, Integer, DateTime, ForeignKey, Text, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, Mapped, mapped_column

from staffhub.core.enums import TrainingStatus
from staffhub.db.base import Base, enum_column, utcnow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class TrainingModule(Base):
    """A learning module. property_id NULL means it is offered everywhere."""

    __tablename__ = "training_modules"

    def __init__(self, **kwargs):
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("passing_score", 70)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estimated_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    certificate_validity_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
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
            "description": self.description,
            "content": self.content,
            "category": self.category,
            "estimated_minutes": self.estimated_minutes,
            "passing_score": self.passing_score,
            "certificate_validity_days": self.certificate_validity_days,
            "property_id": str(self.property_id) if self.property_id else None,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
        }


class TrainingAssignment(Base):
    """A module assigned to one profile with an optional deadline."""

    __tablename__ = "training_assignments"

    def __init__(self, **kwargs):
        kwargs.setdefault("reminder_sent", False)
        kwargs.setdefault("is_deleted", False)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_to_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    assigned_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reminder_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    module: Mapped["TrainingModule"] = relationship("TrainingModule", lazy="joined")

    __table_args__ = (
        Index("ix_training_assignments_deadline", "deadline"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "module_id": str(self.module_id),
            "module_title": self.module.title if self.module else None,
            "assigned_to_user_id": str(self.assigned_to_user_id) if self.assigned_to_user_id else None,
            "assigned_by_user_id": str(self.assigned_by_user_id) if self.assigned_by_user_id else None,
            "deadline": _iso(self.deadline),
            "reminder_sent": self.reminder_sent,
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
        }


class TrainingProgress(Base):
    """Per-user progress through a module."""

    __tablename__ = "training_progress"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", TrainingStatus.NOT_STARTED)
        kwargs.setdefault("progress_percent", 0)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
    )
    assignment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_assignments.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[TrainingStatus] = mapped_column(
        enum_column(TrainingStatus),
        nullable=False,
        default=TrainingStatus.NOT_STARTED,
    )
    progress_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_training_progress_user_module"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "module_id": str(self.module_id),
            "status": self.status.value,
            "progress_percent": self.progress_percent,
            "quiz_score": self.quiz_score,
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
        }


class TrainingCertificate(Base):
    """Certificate issued when a module is passed."""

    __tablename__ = "training_certificates"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    progress_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_progress.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
    )
    certificate_no: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    module: Mapped["TrainingModule"] = relationship("TrainingModule", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "certificate_no": self.certificate_no,
            "module_id": str(self.module_id),
            "module_title": self.module.title if self.module else None,
            "issued_at": _iso(self.issued_at),
            "expires_at": _iso(self.expires_at),
        }
