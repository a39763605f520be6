"""
Task & Maintenance Schemas
==========================
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from staffhub.core.enums import (
    RecurrenceType,
    TaskPriority,
    TaskStatus,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)


# ==========================
# Tasks
# ==========================

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_id: Optional[UUID] = None
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    assigned_to_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    due_date: Optional[datetime] = None


class TaskStatusChange(BaseModel):
    status: TaskStatus


class TaskTemplateCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_id: Optional[UUID] = None
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    recurrence_type: RecurrenceType
    next_run_at: Optional[datetime] = Field(default=None, description="First run, defaults to now")


class TaskTemplateUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    assigned_to_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    recurrence_type: Optional[RecurrenceType] = None
    is_active: Optional[bool] = None
    next_run_at: Optional[datetime] = None


# ==========================
# Maintenance Tickets
# ==========================

class TicketCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    property_id: Optional[UUID] = None
    room_number: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=255)
    category: TicketCategory = TicketCategory.GENERAL
    priority: TicketPriority = TicketPriority.MEDIUM


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    room_number: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=255)
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    assigned_to_id: Optional[UUID] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)


class TicketStatusChange(BaseModel):
    status: TicketStatus
