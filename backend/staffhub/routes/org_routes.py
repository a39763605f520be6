"""
Org Chart Routes
================

Reporting tree and the property/department hierarchy used by the org chart.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse
from staffhub.services import org_chart

router = APIRouter(
    prefix="/org",
    tags=["Org Chart"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get("/tree", summary="Reporting Tree")
def org_tree(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    tree = org_chart.org_tree_for(db, current_user)
    return {"tree": tree, "total": org_chart.count_tree_nodes(tree)}


@router.get(
    "/hierarchy",
    summary="Org Hierarchy",
    description="""
    Properties, their departments and staff grouped by level.

    Regional roles see every property, department heads their own
    department, everyone else their own property. `search` filters staff
    by name, title or email.
    """,
)
def org_hierarchy(
    search: Optional[str] = Query(None, max_length=100),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return org_chart.org_hierarchy_for(db, current_user, search)
