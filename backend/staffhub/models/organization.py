"""
Organization Models
===================

Property (a hotel) is the tenant root in the multi-tenant architecture.
Departments live inside exactly one property.

Database Indexes:
- Unique: properties.name
- Unique: (departments.property_id, departments.name)
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, Mapped, mapped_column

from staffhub.db.base import Base, utcnow

if TYPE_CHECKING:
    from staffhub.models.user import Profile


class Property(Base):
    """
    Property Entity (Tenant Root).

    Property-scoped staff only see rows belonging to their own property.
    Regional roles see across all properties.

    Attributes:
        id: UUID primary key
        name: Unique property name
        property_code: Short code used on reports
        is_headquarters: Marks the corporate office, whose departments are
            shown as shared services in the org hierarchy
        is_active: Soft delete flag
    """

    __tablename__ = "properties"

    def __init__(self, **kwargs):
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        if "is_headquarters" not in kwargs:
            kwargs["is_headquarters"] = False
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
    # Property Info
    # ==========================
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    property_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_headquarters: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

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

    # ==========================
    # Relationships
    # ==========================
    departments: Mapped[List["Department"]] = relationship(
        "Department",
        back_populates="hotel",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "property_code": self.property_code,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "phone": self.phone,
            "is_headquarters": self.is_headquarters,
            "is_active": self.is_active,
            "department_count": len(self.departments) if self.departments else 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Department(Base):
    """
    Department within a property (Front Office, Housekeeping, F&B, ...).
    """

    __tablename__ = "departments"

    def __init__(self, **kwargs):
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

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

    hotel: Mapped["Property"] = relationship("Property", back_populates="departments")

    members: Mapped[List["Profile"]] = relationship(
        "Profile",
        back_populates="department",
        foreign_keys="Profile.department_id",
    )

    __table_args__ = (
        UniqueConstraint("property_id", "name", name="uq_departments_property_name"),
    )

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
