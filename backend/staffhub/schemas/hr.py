"""
HR Schemas
==========

Leave applications, promotions and transfers.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from staffhub.core.enums import LeaveType
from staffhub.models.role_enum import Role


class LeaveRequestCreate(BaseModel):
    """Leave application submitted by the current profile."""

    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def check_dates(self) -> "LeaveRequestCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "leave_type": "annual",
                "start_date": "2026-07-01",
                "end_date": "2026-07-05",
                "reason": "Family holiday"
            }
        }
    )


class PromotionCreate(BaseModel):
    employee_id: UUID
    new_role: Role
    new_job_title: Optional[str] = Field(default=None, max_length=255)
    new_department_id: Optional[UUID] = None
    effective_date: date
    notes: Optional[str] = Field(default=None, max_length=2000)


class TransferCreate(BaseModel):
    employee_id: UUID
    to_property_id: UUID
    to_department_id: Optional[UUID] = None
    effective_date: date
    notes: Optional[str] = Field(default=None, max_length=2000)
