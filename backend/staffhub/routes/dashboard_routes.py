"""
Dashboard Routes
================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse
from staffhub.services import dashboard_service

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get(
    "/stats",
    summary="Dashboard Stats",
    description="Personal counts plus a department, property or regional block depending on role.",
)
def stats(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return dashboard_service.dashboard_stats(db, current_user)
