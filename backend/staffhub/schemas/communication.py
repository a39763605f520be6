"""
Communication Schemas
=====================

Announcements and messages.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from staffhub.core.enums import AnnouncementPriority, MessageType
from staffhub.models.role_enum import Role


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
    is_pinned: bool = False
    property_id: Optional[UUID] = Field(default=None, description="Omit to target every property (regional roles only)")
    target_roles: List[Role] = Field(default_factory=list)
    target_department_ids: List[UUID] = Field(default_factory=list)
    scheduled_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    content: Optional[str] = None
    priority: Optional[AnnouncementPriority] = None
    is_pinned: Optional[bool] = None
    target_roles: Optional[List[Role]] = None
    target_department_ids: Optional[List[UUID]] = None
    scheduled_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class MessageCreate(BaseModel):
    recipient_id: Optional[UUID] = None
    subject: Optional[str] = Field(default=None, max_length=255)
    body: str = Field(..., min_length=1)
    message_type: MessageType = MessageType.DIRECT

    @model_validator(mode="after")
    def check_recipient(self) -> "MessageCreate":
        if self.message_type == MessageType.DIRECT and self.recipient_id is None:
            raise ValueError("recipient_id is required for direct messages")
        if self.message_type == MessageType.SYSTEM:
            raise ValueError("system messages cannot be sent by users")
        return self


class MessageReply(BaseModel):
    body: str = Field(..., min_length=1)
