"""
Search Routes
=============

Global search and typeahead suggestions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.exceptions import ValidationError
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse
from staffhub.services import search_service

router = APIRouter(
    prefix="/search",
    tags=["Search"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


def _parse_types(types: Optional[str]) -> Optional[list]:
    if not types:
        return None
    wanted = [t.strip() for t in types.split(",") if t.strip()]
    unknown = [t for t in wanted if t not in search_service.SEARCH_TYPES]
    if unknown:
        raise ValidationError(
            f"Unknown search type: {', '.join(unknown)}",
            details={"allowed": list(search_service.SEARCH_TYPES)},
        )
    return wanted


@router.get(
    "",
    summary="Global Search",
    description="""
    Search pages, documents, SOPs, training, announcements, tickets and
    (for managers) the staff directory.

    `types` is a comma-separated subset of:
    page, document, user, training, announcement, sop, ticket.
    """,
)
def search(
    q: str = Query("", max_length=200),
    types: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    results = search_service.global_search(db, current_user, q, _parse_types(types), limit)
    return {"query": q, "results": results, "total": len(results)}


@router.get("/suggestions", summary="Search Suggestions")
def suggestions(
    q: str = Query("", max_length=200),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"suggestions": search_service.search_suggestions(db, current_user, q)}
