"""
Feed Routes
===========
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse
from staffhub.services import feed_service

router = APIRouter(
    prefix="/feed",
    tags=["Feed"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get(
    "",
    summary="Staff Feed",
    description="Announcements, documents, tasks, training and birthdays, newest first.",
)
def staff_feed(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    items = feed_service.build_staff_feed(db, current_user)
    return {"items": items, "total": len(items)}
