"""
User Schemas Module
===================

Pydantic models for profile-related request/response validation.
Sensitive fields (password hash, token version) never appear in responses.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from staffhub.models.role_enum import Role


class UserCreate(BaseModel):
    """Schema for creating a new profile (admin use)."""

    email: EmailStr = Field(..., description="Staff email address")
    password: str = Field(..., min_length=8, description="Initial password")
    full_name: str = Field(..., min_length=1, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Role = Field(default=Role.STAFF, description="Staff role")
    property_id: Optional[UUID] = Field(default=None, description="Property (hotel) ID")
    department_id: Optional[UUID] = None
    reporting_to: Optional[UUID] = Field(default=None, description="Manager profile ID")
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane.doe@grandhotel.com",
                "password": "Welcome123",
                "full_name": "Jane Doe",
                "job_title": "Front Desk Agent",
                "role": "staff",
                "property_id": "550e8400-e29b-41d4-a716-446655440001"
            }
        }
    )


class UserUpdate(BaseModel):
    """Schema for updating profile information."""

    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Optional[Role] = None
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    reporting_to: Optional[UUID] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    is_active: Optional[bool] = Field(default=None, description="Account active status")


class ReportingLineUpdate(BaseModel):
    """Set or clear the manager of a profile."""

    reporting_to: Optional[UUID] = Field(default=None, description="Manager profile ID, null to clear")


class UserResponse(BaseModel):
    """Profile response schema (excludes sensitive data)."""

    id: UUID
    email: str
    full_name: str
    job_title: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    reporting_to: Optional[UUID] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    is_active: bool
    is_locked: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(BaseModel):
    """
    Current authenticated profile.

    Includes property placement for frontend routing.
    """

    id: UUID
    email: str
    full_name: str
    job_title: Optional[str] = None
    role: Role
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    reporting_to: Optional[UUID] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    """Response schema for profile list."""

    users: list[UserResponse]
    total: int = Field(..., description="Total number of profiles")
    page: int = Field(default=1, description="Current page number")
    page_size: int = Field(default=20, description="Profiles per page")
