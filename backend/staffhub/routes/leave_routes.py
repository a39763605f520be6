"""
Leave Routes
============

Leave requests and their approval workflow (supervisor, then HR).
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.enums import LeaveStatus
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse, LeaveRequestCreate, RequestCancelBody
from staffhub.services import leave_service

router = APIRouter(
    prefix="/leave",
    tags=["Leave"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Request Leave",
    description="""
    Create a leave request and submit its approval workflow.

    Steps: the requester's manager (when reporting_to is set), then HR.
    """,
)
def create_leave(
    data: LeaveRequestCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return leave_service.create_leave_request(db, current_user, data).to_dict()


@router.get("/mine", summary="My Leave")
def my_leave(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    leaves = leave_service.list_my_leave(db, current_user)
    return {"leave_requests": [leave.to_dict() for leave in leaves], "total": len(leaves)}


@router.get(
    "/team",
    summary="Team Leave",
    description="Staff see their own, department heads their department, property roles their property, regional roles all.",
)
def team_leave(
    status: Optional[LeaveStatus] = Query(None),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    leaves = leave_service.list_team_leave(db, current_user, status)
    return {"leave_requests": [leave.to_dict() for leave in leaves], "total": len(leaves)}


@router.get(
    "/{leave_id}",
    summary="Get Leave Request",
    responses={404: {"model": ErrorResponse, "description": "Leave request not found"}},
)
def get_leave(
    leave_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return leave_service.get_leave_request(db, current_user, leave_id).to_dict()


@router.post(
    "/{leave_id}/cancel",
    summary="Cancel Leave",
    responses={400: {"model": ErrorResponse, "description": "Leave request cannot be cancelled"}},
)
def cancel_leave(
    leave_id: UUID,
    body: RequestCancelBody,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return leave_service.cancel_leave_request(db, current_user, leave_id, body.reason).to_dict()
