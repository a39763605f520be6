"""
Organization Schemas Module
===========================

Pydantic models for properties (hotels) and their departments.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    name: str = Field(..., min_length=2, max_length=255, description="Property name")
    property_code: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_headquarters: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Grand Hotel Riyadh",
                "property_code": "GHR",
                "city": "Riyadh",
                "country": "Saudi Arabia"
            }
        }
    )


class PropertyUpdate(BaseModel):
    """Schema for updating a property."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    property_code: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_headquarters: Optional[bool] = None
    is_active: Optional[bool] = None


class DepartmentCreate(BaseModel):
    """Schema for creating a department within a property."""

    property_id: UUID = Field(..., description="Owning property")
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
