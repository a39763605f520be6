"""
Maintenance Service
===================

Engineering tickets: numbering, tenant-scoped CRUD and the status lifecycle.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import TicketPriority, TicketStatus
from staffhub.core.exceptions import NotFoundError, UserNotFoundError, ValidationError
from staffhub.core.logging import get_logger
from staffhub.core.status_transitions import validate_transition
from staffhub.core.tenant.tenant_query import TenantQuery, tenant_query, validate_tenant_access
from staffhub.db.base import utcnow
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.models.user import Profile
from staffhub.schemas.task import TicketCreate, TicketStatusChange, TicketUpdate

logger = get_logger(__name__)

TERMINAL_TICKET_STATUSES = (TicketStatus.COMPLETED, TicketStatus.CLOSED, TicketStatus.CANCELLED)


def next_ticket_no(db: Session) -> int:
    current = db.query(func.max(MaintenanceTicket.ticket_no)).scalar()
    return (current or 0) + 1


def list_tickets(
    db: Session,
    user: Profile,
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    open_only: bool = False,
) -> List[MaintenanceTicket]:
    query = tenant_query(db, MaintenanceTicket, user)
    if status is not None:
        query = query.filter(MaintenanceTicket.status == status)
    if priority is not None:
        query = query.filter(MaintenanceTicket.priority == priority)
    if open_only:
        query = query.filter(MaintenanceTicket.status.notin_(TERMINAL_TICKET_STATUSES))
    return query.order_by(MaintenanceTicket.created_at.desc()).all()


def get_ticket(db: Session, user: Profile, ticket_id: UUID) -> MaintenanceTicket:
    ticket = TenantQuery(db, MaintenanceTicket, user).get_by_id(ticket_id)
    if ticket is None:
        raise NotFoundError("Maintenance ticket", str(ticket_id))
    return ticket


def create_ticket(db: Session, user: Profile, data: TicketCreate) -> MaintenanceTicket:
    property_id = data.property_id or user.property_id
    if property_id is None:
        raise ValidationError("property_id is required")
    validate_tenant_access(user, property_id, resource="maintenance_tickets")

    ticket = MaintenanceTicket(
        ticket_no=next_ticket_no(db),
        title=data.title,
        description=data.description,
        property_id=property_id,
        room_number=data.room_number,
        location=data.location,
        category=data.category,
        priority=data.priority,
        reported_by_id=user.id,
    )
    db.add(ticket)
    db.commit()

    logger.info(
        "Maintenance ticket created",
        extra={"ticket_id": str(ticket.id), "ticket_no": ticket.ticket_no, "property_id": str(property_id)}
    )
    return ticket


def update_ticket(db: Session, user: Profile, ticket_id: UUID, data: TicketUpdate) -> MaintenanceTicket:
    ticket = get_ticket(db, user, ticket_id)
    changes = data.model_dump(exclude_unset=True)

    assignee_id = changes.get("assigned_to_id")
    if assignee_id is not None:
        assignee = db.get(Profile, assignee_id)
        if assignee is None or not assignee.is_active:
            raise UserNotFoundError(str(assignee_id))
        if assignee.property_id != ticket.property_id:
            raise ValidationError("Assignee must work at the ticket's property")

    for field, value in changes.items():
        setattr(ticket, field, value)
    db.commit()
    return ticket


def change_ticket_status(db: Session, user: Profile, ticket_id: UUID, data: TicketStatusChange) -> MaintenanceTicket:
    ticket = get_ticket(db, user, ticket_id)
    validate_transition("maintenance_ticket", ticket.status, data.status)

    ticket.status = data.status
    if data.status == TicketStatus.COMPLETED:
        ticket.completed_at = utcnow()
    elif data.status != TicketStatus.CLOSED:
        ticket.completed_at = None
    db.commit()

    logger.info(
        "Maintenance ticket status changed",
        extra={"ticket_no": ticket.ticket_no, "status": data.status.value, "actor_id": str(user.id)}
    )
    return ticket
