"""
Approval Request Schemas
========================

Bodies for acting on, cancelling and editing approval requests.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from staffhub.core.enums import CommentVisibility, RequestAction


class RequestActionBody(BaseModel):
    """Action on the current step of a request."""

    action: RequestAction = Field(..., description="approve | reject | return | forward | close | add_comment")
    comment: Optional[str] = Field(default=None, max_length=5000)
    forward_to: Optional[UUID] = Field(default=None, description="Profile to forward to (forward only)")
    visibility: CommentVisibility = Field(default=CommentVisibility.ALL, description="Comment visibility")

    @model_validator(mode="after")
    def check_action_payload(self) -> "RequestActionBody":
        if self.action == RequestAction.FORWARD and self.forward_to is None:
            raise ValueError("forward_to is required when forwarding a request")
        if self.action == RequestAction.ADD_COMMENT and not (self.comment or "").strip():
            raise ValueError("comment is required when adding a comment")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "action": "approve",
                "comment": "Enjoy your leave"
            }
        }
    )


class RequestCancelBody(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class RequestDetailsUpdate(BaseModel):
    """Metadata updates for a pending request; keys are merged."""

    updates: Dict[str, Any] = Field(..., description="Fields merged into the request metadata")
