"""
HR Routes
=========

Promotions and transfers. Each creates its entity plus an approval request
in pending_hr_review; approved changes are applied on their effective date
by POST /hr/process-due.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.rbac import require_role_or_higher
from staffhub.core.enums import HRChangeStatus
from staffhub.core.logging import get_logger
from staffhub.db.session import get_db
from staffhub.models.role_enum import Role
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse, PromotionCreate, TransferCreate
from staffhub.services import hr_service

logger = get_logger(__name__)

require_hr = require_role_or_higher(Role.PROPERTY_HR)

router = APIRouter(
    prefix="/hr",
    tags=["HR"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Requires PROPERTY_HR or higher"},
    },
)


@router.post(
    "/promotions",
    status_code=status.HTTP_201_CREATED,
    summary="Propose Promotion",
    description="Creates the promotion and a request assigned to the first regional HR.",
)
def create_promotion(
    data: PromotionCreate,
    current_user: Profile = Depends(require_hr),
    db: Session = Depends(get_db),
) -> dict:
    return hr_service.create_promotion(db, current_user, data).to_dict()


@router.get("/promotions", summary="List Promotions")
def list_promotions(
    status: Optional[HRChangeStatus] = Query(None),
    current_user: Profile = Depends(require_hr),
    db: Session = Depends(get_db),
) -> dict:
    promotions = hr_service.list_promotions(db, current_user, status)
    return {"promotions": [p.to_dict() for p in promotions], "total": len(promotions)}


@router.post(
    "/transfers",
    status_code=status.HTTP_201_CREATED,
    summary="Propose Transfer",
    description="Creates the transfer and a request for the target property's HR (regional HR as fallback).",
)
def create_transfer(
    data: TransferCreate,
    current_user: Profile = Depends(require_hr),
    db: Session = Depends(get_db),
) -> dict:
    return hr_service.create_transfer(db, current_user, data).to_dict()


@router.get("/transfers", summary="List Transfers")
def list_transfers(
    status: Optional[HRChangeStatus] = Query(None),
    current_user: Profile = Depends(require_hr),
    db: Session = Depends(get_db),
) -> dict:
    transfers = hr_service.list_transfers(db, current_user, status)
    return {"transfers": [t.to_dict() for t in transfers], "total": len(transfers)}


@router.post(
    "/process-due",
    summary="Apply Due HR Changes",
    description="Apply approved promotions and transfers whose effective date has passed.",
)
def process_due(
    current_user: Profile = Depends(require_hr),
    db: Session = Depends(get_db),
) -> dict:
    result = hr_service.process_due(db)
    logger.info("Due HR changes processed", extra={"user_id": str(current_user.id), **result})
    return result
