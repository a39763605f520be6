"""
Notification Routes
===================

The caller's in-app notification inbox.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse
from staffhub.services import notification_service

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get("", summary="List Notifications")
def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return notification_service.list_notifications(db, current_user, unread_only, page, page_size)


@router.get("/unread-count", summary="Unread Count")
def unread_count(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"count": notification_service.unread_count(db, current_user)}


@router.post("/read-all", summary="Mark All Read")
def mark_all_read(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"updated": notification_service.mark_all_read(db, current_user)}


@router.post(
    "/{notification_id}/read",
    summary="Mark Read",
    responses={404: {"model": ErrorResponse, "description": "Notification not found"}},
)
def mark_read(
    notification_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return notification_service.mark_read(db, current_user, notification_id).to_dict()


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Notification",
)
def delete_notification(
    notification_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    notification_service.delete_notification(db, current_user, notification_id)
