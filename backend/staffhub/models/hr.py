"""
HR Entity Models
================

Leave requests, promotions and transfers. Each is linked to an approval
Request that drives its status; the entity keeps the business payload
(dates, old/new role, source/target property).
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import String, Date, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from staffhub.core.enums import HRChangeStatus, LeaveStatus, LeaveType
from staffhub.db.base import Base, enum_column, utcnow
from staffhub.models.role_enum import Role


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _str(value) -> Optional[str]:
    return str(value) if value else None


class LeaveRequest(Base):
    """Leave application by a staff member."""

    __tablename__ = "leave_requests"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = LeaveStatus.PENDING
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    leave_type: Mapped[LeaveType] = mapped_column(enum_column(LeaveType), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[LeaveStatus] = mapped_column(enum_column(LeaveStatus), nullable=False, default=LeaveStatus.PENDING)
    workflow_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("requests.id", ondelete="SET NULL"),
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

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "requester_id": str(self.requester_id),
            "property_id": _str(self.property_id),
            "department_id": _str(self.department_id),
            "leave_type": self.leave_type.value,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "total_days": self.total_days,
            "reason": self.reason,
            "status": self.status.value,
            "workflow_request_id": _str(self.workflow_request_id),
            "created_at": _iso(self.created_at),
        }


class Promotion(Base):
    """Role / job title change for an employee, effective on a date."""

    __tablename__ = "promotions"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = HRChangeStatus.PENDING
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    promoted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    old_role: Mapped[Optional[Role]] = mapped_column(enum_column(Role), nullable=True)
    new_role: Mapped[Role] = mapped_column(enum_column(Role), nullable=False)
    old_job_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    new_job_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    old_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    new_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[HRChangeStatus] = mapped_column(
        enum_column(HRChangeStatus),
        nullable=False,
        default=HRChangeStatus.PENDING,
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
            "employee_id": str(self.employee_id),
            "promoted_by": _str(self.promoted_by),
            "old_role": self.old_role.value if self.old_role else None,
            "new_role": self.new_role.value,
            "old_job_title": self.old_job_title,
            "new_job_title": self.new_job_title,
            "old_department_id": _str(self.old_department_id),
            "new_department_id": _str(self.new_department_id),
            "effective_date": _iso(self.effective_date),
            "notes": self.notes,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
        }


class Transfer(Base):
    """Move of an employee to another property (and optionally department)."""

    __tablename__ = "transfers"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = HRChangeStatus.PENDING
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requested_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    from_property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
    )
    to_property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )
    from_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    to_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[HRChangeStatus] = mapped_column(
        enum_column(HRChangeStatus),
        nullable=False,
        default=HRChangeStatus.PENDING,
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
            "employee_id": str(self.employee_id),
            "requested_by": _str(self.requested_by),
            "from_property_id": _str(self.from_property_id),
            "to_property_id": str(self.to_property_id),
            "from_department_id": _str(self.from_department_id),
            "to_department_id": _str(self.to_department_id),
            "effective_date": _iso(self.effective_date),
            "notes": self.notes,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
        }
