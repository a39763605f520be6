"""
Approval Request Routes
=======================

Generic approval workflow: the requester's own requests, the approver's
queue, request detail and the approve/reject/return/forward/close actions.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_permission
from staffhub.core.enums import RequestEntityType, RequestStatus
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse, RequestActionBody, RequestCancelBody, RequestDetailsUpdate
from staffhub.services import request_workflow

router = APIRouter(
    prefix="/requests",
    tags=["Requests"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    },
)


@router.get("/mine", summary="My Requests")
def my_requests(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    requests = request_workflow.list_my_requests(db, current_user)
    return {"requests": [r.to_dict() for r in requests], "total": len(requests)}


@router.get(
    "/approvals",
    summary="My Approval Queue",
    description="Pending requests whose current step is assigned to the caller, oldest first.",
)
def my_approvals(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    requests = request_workflow.list_my_approvals(db, current_user)
    return {"requests": [r.to_dict() for r in requests], "total": len(requests)}


@router.get("", summary="List Requests")
def list_requests(
    status: Optional[RequestStatus] = Query(None),
    entity_type: Optional[RequestEntityType] = Query(None),
    current_user: Profile = Depends(require_permission("hr", "approve")),
    db: Session = Depends(get_db),
) -> dict:
    requests = request_workflow.list_all_requests(db, current_user, status, entity_type)
    return {"requests": [r.to_dict() for r in requests], "total": len(requests)}


@router.get(
    "/{request_id}",
    summary="Request Detail",
    description="Request with steps, events and comments. Internal comments are hidden from the requester.",
    responses={404: {"model": ErrorResponse, "description": "Request not found"}},
)
def get_request(
    request_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    request = request_workflow.get_visible_request(db, current_user, request_id)
    return request_workflow.request_detail(current_user, request)


@router.post(
    "/{request_id}/actions",
    summary="Act on Request",
    description="""
    Apply a workflow action as the current step's assignee.

    - approve: completes the step; the next step activates or the request is approved
    - reject: rejects the request (a comment is required)
    - return: sends the request back to the requester for correction
    - forward: hands the current step to another profile
    - close: HR closes an approved or rejected request
    - add_comment: comment without changing status
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid status transition"}},
)
def act_on_request(
    request_id: UUID,
    body: RequestActionBody,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    request = request_workflow.apply_action(
        db,
        current_user,
        request_id,
        body.action,
        comment=body.comment,
        forward_to=body.forward_to,
        visibility=body.visibility,
    )
    return request_workflow.request_detail(current_user, request)


@router.post("/{request_id}/resubmit", summary="Resubmit Returned Request")
def resubmit_request(
    request_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    request = request_workflow.resubmit_request(db, current_user, request_id)
    return request_workflow.request_detail(current_user, request)


@router.post("/{request_id}/cancel", summary="Cancel Request")
def cancel_request(
    request_id: UUID,
    body: RequestCancelBody,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    request = request_workflow.cancel_request(db, current_user, request_id, body.reason)
    return request_workflow.request_detail(current_user, request)


@router.patch(
    "/{request_id}",
    summary="Update Request Details",
    description="The requester or regional HR/admin edits a pending request; dates and targets sync to the linked entity.",
)
def update_request(
    request_id: UUID,
    body: RequestDetailsUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    request = request_workflow.update_request_details(db, current_user, request_id, body.updates)
    return request_workflow.request_detail(current_user, request)
