"""
Maintenance Ticket Triage Job
=============================

Asks the language model to classify a maintenance ticket and stores the
suggested priority, category, estimate and notes on the ticket.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator
from sqlalchemy.orm import Session

from staffhub.core.enums import TicketCategory, TicketPriority
from staffhub.core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.db.base import utcnow
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.services.llm_client import LLMClient, extract_json_block

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a hotel maintenance manager. Analyze the maintenance ticket and respond with JSON only:
{
  "priority": "low" | "medium" | "high" | "critical",
  "suggested_category": "plumbing" | "electrical" | "hvac" | "appliance" | "structural" | "cosmetic" | "safety" | "general",
  "estimated_hours": number,
  "ai_notes": "short recommendation for the technician"
}

Priority rules:
- critical: safety hazards, flooding, fire risk, guests locked out, no power to a floor
- high: affects a guest room in use or a core service (no hot water, broken AC in summer)
- medium: degrades service but has a workaround
- low: cosmetic or can wait for routine maintenance"""


class TriageResult(BaseModel):
    priority: TicketPriority = TicketPriority.MEDIUM
    suggested_category: str = TicketCategory.GENERAL.value
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    ai_notes: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def lower_priority(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def category(self) -> TicketCategory:
        try:
            return TicketCategory(self.suggested_category.lower())
        except ValueError:
            return TicketCategory.OTHER


def _ticket_prompt(ticket: MaintenanceTicket) -> str:
    lines = [f"Title: {ticket.title}"]
    if ticket.description:
        lines.append(f"Description: {ticket.description}")
    if ticket.location:
        lines.append(f"Location: {ticket.location}")
    if ticket.room_number:
        lines.append(f"Room: {ticket.room_number}")
    return "\n".join(lines)


async def run_ticket_triage(
    db: Session,
    ticket_id: Optional[UUID],
    client: Optional[LLMClient] = None,
) -> dict:
    """
    Triage one ticket.

    Raises:
        ValidationError: ticket_id missing
        NotFoundError: unknown ticket
    """
    if ticket_id is None:
        raise ValidationError("Missing ticket_id")

    ticket = db.get(MaintenanceTicket, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket", str(ticket_id))

    if ticket.is_triaged:
        return {"success": True, "message": "Ticket already triaged", "skipped": True}

    client = client or LLMClient()
    try:
        reply = await client.complete(SYSTEM_PROMPT, _ticket_prompt(ticket))
    except ExternalServiceError as e:
        logger.warning("Ticket triage model call failed", extra={"ticket_id": str(ticket_id), "error": str(e)})
        return {"success": False, "message": "AI analysis failed"}

    parsed = extract_json_block(reply)
    if parsed is None:
        logger.warning("Ticket triage reply had no JSON", extra={"ticket_id": str(ticket_id)})
        return {"success": False, "message": "AI analysis failed"}

    try:
        triage = TriageResult.model_validate(parsed)
    except PydanticValidationError as e:
        logger.warning("Ticket triage reply invalid", extra={"ticket_id": str(ticket_id), "error": str(e)})
        return {"success": False, "message": "AI analysis failed"}

    ticket.priority = triage.priority
    ticket.category = triage.category
    ticket.estimated_hours = triage.estimated_hours
    ticket.ai_triage_notes = triage.ai_notes or None
    ticket.ai_triaged_at = utcnow()
    db.commit()

    result = {
        "success": True,
        "triage": {
            "priority": triage.priority.value,
            "category": triage.category.value,
            "estimated_hours": triage.estimated_hours,
            "ai_notes": triage.ai_notes,
        },
    }
    audit_logger.log_job_run("ticket_triage", {"ticket_id": str(ticket_id), **result["triage"]})
    return result
