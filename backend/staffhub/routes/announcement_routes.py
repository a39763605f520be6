"""
Announcement Routes
===================

Property and company-wide announcements. Critical announcements also fan
out an in-app notification to every targeted staff member.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_role_or_higher
from staffhub.db.session import get_db
from staffhub.models.role_enum import Role
from staffhub.models.user import Profile
from staffhub.schemas import AnnouncementCreate, AnnouncementUpdate, ErrorResponse
from staffhub.services import announcement_service

router = APIRouter(
    prefix="/announcements",
    tags=["Announcements"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    },
)


@router.get(
    "",
    summary="List Announcements",
    description="Visible announcements, pinned first then newest. Scheduled and expired ones are excluded.",
)
def list_announcements(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    announcements = announcement_service.list_announcements(db, current_user)
    return {"announcements": announcements, "total": len(announcements)}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Announcement",
)
def create_announcement(
    data: AnnouncementCreate,
    current_user: Profile = Depends(require_role_or_higher(Role.DEPARTMENT_HEAD)),
    db: Session = Depends(get_db),
) -> dict:
    return announcement_service.create_announcement(db, current_user, data).to_dict()


@router.patch("/{announcement_id}", summary="Update Announcement")
def update_announcement(
    announcement_id: UUID,
    data: AnnouncementUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return announcement_service.update_announcement(db, current_user, announcement_id, data).to_dict()


@router.delete(
    "/{announcement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Announcement",
)
def delete_announcement(
    announcement_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    announcement_service.delete_announcement(db, current_user, announcement_id)


@router.post("/{announcement_id}/read", summary="Mark Announcement Read")
def mark_read(
    announcement_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    receipt = announcement_service.mark_announcement_read(db, current_user, announcement_id)
    return {"announcement_id": str(receipt.announcement_id), "read_at": receipt.read_at.isoformat()}
