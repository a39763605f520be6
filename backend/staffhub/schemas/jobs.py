"""
Job Endpoint Schemas
====================

Bodies accepted by the scheduler-invoked job endpoints.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from staffhub.core.enums import NotificationType


class TriageRequest(BaseModel):
    ticket_id: Optional[UUID] = None


class NotificationBatchRequest(BaseModel):
    """create_batch | process_batch | get_status"""

    action: str = Field(..., pattern="^(create_batch|process_batch|get_status)$")
    batch_id: Optional[UUID] = None
    user_ids: List[UUID] = Field(default_factory=list)
    notification_type: NotificationType = NotificationType.TRAINING_ASSIGNED
    title: Optional[str] = None
    message: Optional[str] = None
    link: Optional[str] = None
    job_type: str = Field(default="bulk_notification")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    batch_size: Optional[int] = Field(default=None, ge=1, le=500)
