"""
Training Schemas
================
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from staffhub.core.enums import AssignmentTarget


class TrainingModuleCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    estimated_minutes: Optional[int] = Field(default=None, ge=1)
    passing_score: int = Field(default=70, ge=0, le=100)
    certificate_validity_days: Optional[int] = Field(default=None, ge=1)
    property_id: Optional[UUID] = Field(default=None, description="Omit for a module offered everywhere")


class TrainingModuleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    estimated_minutes: Optional[int] = Field(default=None, ge=1)
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    certificate_validity_days: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None


class TrainingAssignRequest(BaseModel):
    """Assign a module to a user, a department, a property or everyone."""

    target_type: AssignmentTarget
    target_id: Optional[UUID] = Field(default=None, description="Profile, department or property ID")
    deadline: Optional[datetime] = None

    @model_validator(mode="after")
    def check_target(self) -> "TrainingAssignRequest":
        if self.target_type != AssignmentTarget.ALL and self.target_id is None:
            raise ValueError("target_id is required unless assigning to all")
        return self


class TrainingCompleteRequest(BaseModel):
    quiz_score: int = Field(..., ge=0, le=100)
