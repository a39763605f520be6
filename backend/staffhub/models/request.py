"""
Approval Request Models
=======================

A Request is the generic approval envelope shared by leave, promotion and
transfer entities. It is routed through ordered RequestSteps; every change
is recorded as a RequestEvent, and discussion lives in RequestComments.

The current step of a request is the pending step with the lowest
step_order.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    ForeignKey,
    Text,
    JSON,
    Index,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, Mapped, mapped_column

from staffhub.core.enums import (
    CommentVisibility,
    RequestEntityType,
    RequestEventType,
    RequestStatus,
    StepStatus,
)
from staffhub.db.base import Base, enum_column, utcnow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Request(Base):
    """
    Approval request routed to designated approvers.
    """

    __tablename__ = "requests"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = RequestStatus.DRAFT
        if "meta" not in kwargs:
            kwargs["meta"] = {}
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    request_no: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)

    # ==========================
    # Linked Entity
    # ==========================
    entity_type: Mapped[RequestEntityType] = mapped_column(enum_column(RequestEntityType), nullable=False)
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    # ==========================
    # Participants
    # ==========================
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    current_assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # ==========================
    # Lifecycle
    # ==========================
    status: Mapped[RequestStatus] = mapped_column(enum_column(RequestStatus), nullable=False, default=RequestStatus.DRAFT)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # "metadata" is reserved on declarative classes
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

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

    # ==========================
    # Relationships
    # ==========================
    steps: Mapped[List["RequestStep"]] = relationship(
        "RequestStep",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestStep.step_order",
        lazy="selectin",
    )
    comments: Mapped[List["RequestComment"]] = relationship(
        "RequestComment",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestComment.created_at",
    )
    events: Mapped[List["RequestEvent"]] = relationship(
        "RequestEvent",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestEvent.created_at",
    )

    __table_args__ = (
        Index("ix_requests_status", "status"),
        Index("ix_requests_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<Request(no={self.request_no}, type={self.entity_type}, status={self.status})>"

    @property
    def current_step(self) -> Optional["RequestStep"]:
        pending = [step for step in self.steps if step.status == StepStatus.PENDING]
        return min(pending, key=lambda step: step.step_order) if pending else None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "request_no": self.request_no,
            "entity_type": self.entity_type.value,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "requester_id": str(self.requester_id),
            "supervisor_id": str(self.supervisor_id) if self.supervisor_id else None,
            "current_assignee_id": str(self.current_assignee_id) if self.current_assignee_id else None,
            "property_id": str(self.property_id) if self.property_id else None,
            "status": self.status.value,
            "submitted_at": _iso(self.submitted_at),
            "closed_at": _iso(self.closed_at),
            "metadata": dict(self.meta or {}),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class RequestStep(Base):
    """One approver slot in a request's chain."""

    __tablename__ = "request_steps"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = StepStatus.WAITING
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    assignee_role: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[StepStatus] = mapped_column(enum_column(StepStatus), nullable=False, default=StepStatus.WAITING)
    acted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
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

    request: Mapped["Request"] = relationship("Request", back_populates="steps")

    __table_args__ = (
        UniqueConstraint("request_id", "step_order", name="uq_request_steps_order"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "step_order": self.step_order,
            "assignee_id": str(self.assignee_id) if self.assignee_id else None,
            "assignee_role": self.assignee_role,
            "status": self.status.value,
            "acted_at": _iso(self.acted_at),
            "comment": self.comment,
        }


class RequestComment(Base):
    """Discussion entry on a request. Internal comments are hidden from the requester."""

    __tablename__ = "request_comments"

    def __init__(self, **kwargs):
        if "visibility" not in kwargs:
            kwargs["visibility"] = CommentVisibility.ALL
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[CommentVisibility] = mapped_column(
        enum_column(CommentVisibility),
        nullable=False,
        default=CommentVisibility.ALL,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    request: Mapped["Request"] = relationship("Request", back_populates="comments")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "author_id": str(self.author_id),
            "comment": self.comment,
            "visibility": self.visibility.value,
            "created_at": _iso(self.created_at),
        }


class RequestEvent(Base):
    """Append-only history entry for a request."""

    __tablename__ = "request_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    event_type: Mapped[RequestEventType] = mapped_column(enum_column(RequestEventType), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    request: Mapped["Request"] = relationship("Request", back_populates="events")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "event_type": self.event_type.value,
            "payload": self.payload or {},
            "created_at": _iso(self.created_at),
        }
