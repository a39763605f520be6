"""
Maintenance Models
==================

Engineering work orders raised by staff, optionally triaged by the LLM job
(which fills priority, category, estimate and notes), and the preventive
schedules that raise them automatically.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Float, Boolean, DateTime, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from staffhub.core.enums import MaintenanceFrequency, TicketCategory, TicketPriority, TicketStatus
from staffhub.db.base import Base, enum_column, utcnow


class MaintenanceTicket(Base):
    __tablename__ = "maintenance_tickets"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", TicketStatus.OPEN)
        kwargs.setdefault("priority", TicketPriority.MEDIUM)
        kwargs.setdefault("category", TicketCategory.GENERAL)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    ticket_no: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[TicketCategory] = mapped_column(
        enum_column(TicketCategory),
        nullable=False,
        default=TicketCategory.GENERAL,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        enum_column(TicketPriority),
        nullable=False,
        default=TicketPriority.MEDIUM,
    )
    status: Mapped[TicketStatus] = mapped_column(enum_column(TicketStatus), nullable=False, default=TicketStatus.OPEN)
    reported_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    estimated_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ai_triage_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_triaged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
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

    __table_args__ = (
        Index("ix_maintenance_tickets_status", "status"),
    )

    @property
    def is_triaged(self) -> bool:
        """Triaged by the job, or already classified by hand."""
        if self.ai_triaged_at is not None:
            return True
        return self.category != TicketCategory.GENERAL and self.priority != TicketPriority.MEDIUM

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "ticket_no": self.ticket_no,
            "title": self.title,
            "description": self.description,
            "property_id": str(self.property_id),
            "room_number": self.room_number,
            "location": self.location,
            "category": self.category.value,
            "priority": self.priority.value,
            "status": self.status.value,
            "reported_by_id": str(self.reported_by_id) if self.reported_by_id else None,
            "assigned_to_id": str(self.assigned_to_id) if self.assigned_to_id else None,
            "estimated_hours": self.estimated_hours,
            "ai_triage_notes": self.ai_triage_notes,
            "ai_triaged_at": self.ai_triaged_at.isoformat() if self.ai_triaged_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class MaintenanceSchedule(Base):
    """Recurring preventive maintenance that raises a ticket on each due date."""

    __tablename__ = "maintenance_schedules"

    def __init__(self, **kwargs):
        kwargs.setdefault("priority", TicketPriority.MEDIUM)
        kwargs.setdefault("category", TicketCategory.GENERAL)
        kwargs.setdefault("is_active", True)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[TicketCategory] = mapped_column(
        enum_column(TicketCategory),
        nullable=False,
        default=TicketCategory.GENERAL,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        enum_column(TicketPriority),
        nullable=False,
        default=TicketPriority.MEDIUM,
    )
    frequency: Mapped[MaintenanceFrequency] = mapped_column(enum_column(MaintenanceFrequency), nullable=False)
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    next_run_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    last_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
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
            "property_id": str(self.property_id),
            "category": self.category.value,
            "priority": self.priority.value,
            "frequency": self.frequency.value,
            "assigned_to_id": str(self.assigned_to_id) if self.assigned_to_id else None,
            "is_active": self.is_active,
            "next_run_at": self.next_run_at.isoformat() if self.next_run_at else None,
            "last_generated_at": self.last_generated_at.isoformat() if self.last_generated_at else None,
        }
