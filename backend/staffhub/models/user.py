"""
Profile Model
=============

A staff member's record: identity, role, placement (property, department,
reporting line) and account security state.

Security Features:
- Account lock after configurable failed attempts
- Token version for JWT invalidation
- Enum-based role enforcement
- Soft delete support via is_active flag

Database Indexes:
- Unique index: email
- Index: property_id (for tenant isolation queries)
- Index: role, reporting_to
"""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, Mapped, mapped_column

from staffhub.db.base import Base, enum_column, utcnow
from staffhub.models.role_enum import Role

if TYPE_CHECKING:
    from staffhub.models.organization import Property, Department


class Profile(Base):
    """
    Profile entity representing an authenticated staff member.

    Multi-Tenant Enforcement:
        property_id is the tenant key. Regional staff may have no property.

    Security Controls:
        - failed_attempts: Counter for failed login attempts
        - is_locked: Account lock flag
        - token_version: For forced logout/token invalidation
        - is_active: Soft delete flag
    """

    __tablename__ = "profiles"

    def __init__(self, **kwargs):
        """Initialize Profile with Python-level defaults."""
        if "role" not in kwargs:
            kwargs["role"] = Role.STAFF
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        if "failed_attempts" not in kwargs:
            kwargs["failed_attempts"] = 0
        if "is_locked" not in kwargs:
            kwargs["is_locked"] = False
        if "token_version" not in kwargs:
            kwargs["token_version"] = 1
        super().__init__(**kwargs)

    # ==========================
    # Primary Key
    # ==========================
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    # ==========================
    # Tenant Placement
    # ==========================
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

    reporting_to: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    hotel: Mapped[Optional["Property"]] = relationship("Property", lazy="joined")

    department: Mapped[Optional["Department"]] = relationship(
        "Department",
        back_populates="members",
        foreign_keys=[department_id],
        lazy="joined",
    )

    # ==========================
    # Authentication
    # ==========================
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    # ==========================
    # Personal Details
    # ==========================
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    job_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # ==========================
    # Authorization
    # ==========================
    role: Mapped[Role] = mapped_column(enum_column(Role), nullable=False, default=Role.STAFF)

    # ==========================
    # Account Status
    # ==========================
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    failed_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # ==========================
    # Timestamps
    # ==========================
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
        Index("ix_profiles_role", "role"),
        Index("ix_profiles_reporting_to", "reporting_to"),
    )

    # ==========================
    # Methods
    # ==========================

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def tenant_id(self) -> Optional[uuid.UUID]:
        """Alias used by tenant scoping and log context."""
        return self.property_id

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def unlock_account(self) -> None:
        """Unlock the account and reset failed attempts."""
        self.is_locked = False
        self.failed_attempts = 0

    def invalidate_tokens(self) -> None:
        """Invalidate all tokens by incrementing version."""
        self.token_version += 1

    def to_dict(self) -> dict:
        """
        Convert profile to dictionary (excludes sensitive data).
        """
        return {
            "id": str(self.id),
            "email": self.email,
            "full_name": self.full_name,
            "job_title": self.job_title,
            "phone": self.phone,
            "avatar_url": self.avatar_url,
            "role": self.role.value if hasattr(self.role, "value") else self.role,
            "property_id": str(self.property_id) if self.property_id else None,
            "property_name": self.hotel.name if self.hotel else None,
            "department_id": str(self.department_id) if self.department_id else None,
            "department_name": self.department.name if self.department else None,
            "reporting_to": str(self.reporting_to) if self.reporting_to else None,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "hire_date": self.hire_date.isoformat() if self.hire_date else None,
            "is_active": self.is_active,
            "is_locked": self.is_locked,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
