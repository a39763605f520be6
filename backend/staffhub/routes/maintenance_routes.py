"""
Maintenance Routes
==================

Property maintenance tickets. New tickets can be triaged by the
auto-triage-ticket job.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.rbac import require_permission
from staffhub.core.enums import TicketPriority, TicketStatus
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse, TicketCreate, TicketStatusChange, TicketUpdate
from staffhub.services import maintenance_service

router = APIRouter(
    prefix="/maintenance",
    tags=["Maintenance"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    },
)


@router.get("/tickets", summary="List Tickets")
def list_tickets(
    status: Optional[TicketStatus] = Query(None),
    priority: Optional[TicketPriority] = Query(None),
    open_only: bool = Query(False),
    current_user: Profile = Depends(require_permission("maintenance", "read")),
    db: Session = Depends(get_db),
) -> dict:
    tickets = maintenance_service.list_tickets(db, current_user, status, priority, open_only)
    return {"tickets": [t.to_dict() for t in tickets], "total": len(tickets)}


@router.post(
    "/tickets",
    status_code=status.HTTP_201_CREATED,
    summary="Report Issue",
    description="Open a ticket at the caller's property. Ticket numbers are sequential.",
)
def create_ticket(
    data: TicketCreate,
    current_user: Profile = Depends(require_permission("maintenance", "create")),
    db: Session = Depends(get_db),
) -> dict:
    return maintenance_service.create_ticket(db, current_user, data).to_dict()


@router.get(
    "/tickets/{ticket_id}",
    summary="Get Ticket",
    responses={404: {"model": ErrorResponse, "description": "Ticket not found"}},
)
def get_ticket(
    ticket_id: UUID,
    current_user: Profile = Depends(require_permission("maintenance", "read")),
    db: Session = Depends(get_db),
) -> dict:
    return maintenance_service.get_ticket(db, current_user, ticket_id).to_dict()


@router.patch("/tickets/{ticket_id}", summary="Update Ticket")
def update_ticket(
    ticket_id: UUID,
    data: TicketUpdate,
    current_user: Profile = Depends(require_permission("maintenance", "update")),
    db: Session = Depends(get_db),
) -> dict:
    return maintenance_service.update_ticket(db, current_user, ticket_id, data).to_dict()


@router.post(
    "/tickets/{ticket_id}/status",
    summary="Change Ticket Status",
    responses={400: {"model": ErrorResponse, "description": "Invalid status transition"}},
)
def change_status(
    ticket_id: UUID,
    data: TicketStatusChange,
    current_user: Profile = Depends(require_permission("maintenance", "update")),
    db: Session = Depends(get_db),
) -> dict:
    return maintenance_service.change_ticket_status(db, current_user, ticket_id, data).to_dict()
