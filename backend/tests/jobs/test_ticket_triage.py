"""
Ticket Triage Job Tests
=======================

Covers:
- Model reply applied to the ticket
- Unknown categories fall back to other
- Already triaged tickets are skipped
- Broken replies, unreadable bodies and outages leave the ticket untouched
- Missing and unknown ticket ids
"""

import json
import uuid

import httpx
import pytest

from staffhub.core.enums import TicketCategory, TicketPriority
from staffhub.core.exceptions import NotFoundError, ValidationError
from staffhub.jobs.ticket_triage import TriageResult, run_ticket_triage
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.services.llm_client import LLMClient


pytestmark = pytest.mark.jobs


def llm_replying(content, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code)
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})
    return LLMClient(api_url="https://llm.test", api_key="k", transport=httpx.MockTransport(handler))


@pytest.fixture
def ticket(db_session, grand_hotel):
    ticket = MaintenanceTicket(
        ticket_no=101,
        title="Water leaking under sink",
        description="Guest reports a puddle in the bathroom",
        room_number="412",
        property_id=grand_hotel.id,
    )
    db_session.add(ticket)
    db_session.commit()
    return ticket


class TestTriageResult:
    """Tests for reply parsing."""

    def test_uppercase_priority(self):
        """Test priorities are matched case-insensitively."""
        # Assert
        assert TriageResult.model_validate({"priority": "HIGH"}).priority == TicketPriority.HIGH

    def test_unknown_category(self):
        """Test an unknown category maps to other."""
        # Assert
        assert TriageResult(suggested_category="gardening").category == TicketCategory.OTHER


class TestRunTicketTriage:
    """Tests for run_ticket_triage."""

    @pytest.mark.asyncio
    async def test_applies_suggestion(self, db_session, ticket):
        """Test the parsed reply is stored on the ticket."""
        # Arrange
        reply = json.dumps({
            "priority": "high",
            "suggested_category": "plumbing",
            "estimated_hours": 1.5,
            "ai_notes": "Replace the trap seal",
        })

        # Act
        result = await run_ticket_triage(db_session, ticket.id, llm_replying(f"```json\n{reply}\n```"))

        # Assert
        assert result["success"] is True
        assert result["triage"]["category"] == "plumbing"
        db_session.refresh(ticket)
        assert ticket.priority == TicketPriority.HIGH
        assert ticket.category == TicketCategory.PLUMBING
        assert ticket.estimated_hours == 1.5
        assert ticket.ai_triage_notes == "Replace the trap seal"
        assert ticket.ai_triaged_at is not None

    @pytest.mark.asyncio
    async def test_already_triaged_skipped(self, db_session, ticket):
        """Test a second triage does not call the model."""
        # Arrange
        await run_ticket_triage(db_session, ticket.id, llm_replying('{"priority": "low"}'))

        def fail(request):
            raise AssertionError("model should not be called")

        client = LLMClient(api_url="https://llm.test", api_key="k", transport=httpx.MockTransport(fail))

        # Act
        result = await run_ticket_triage(db_session, ticket.id, client)

        # Assert
        assert result["skipped"] is True

    @pytest.mark.asyncio
    async def test_reply_without_json(self, db_session, ticket):
        """Test prose-only replies fail without touching the ticket."""
        # Act
        result = await run_ticket_triage(db_session, ticket.id, llm_replying("I cannot help with that."))

        # Assert
        assert result == {"success": False, "message": "AI analysis failed"}
        db_session.refresh(ticket)
        assert ticket.ai_triaged_at is None

    @pytest.mark.asyncio
    async def test_invalid_fields(self, db_session, ticket):
        """Test out-of-range values are rejected."""
        # Act
        result = await run_ticket_triage(db_session, ticket.id, llm_replying('{"priority": "urgent-ish"}'))

        # Assert
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_model_unavailable(self, db_session, ticket):
        """Test an outage reports failure instead of raising."""
        # Act
        result = await run_ticket_triage(db_session, ticket.id, llm_replying("", status_code=503))

        # Assert
        assert result["success"] is False
        db_session.refresh(ticket)
        assert ticket.priority == TicketPriority.MEDIUM

    @pytest.mark.asyncio
    async def test_missing_ticket_id(self, db_session):
        """Test a missing id is a validation error."""
        # Act / Assert
        with pytest.raises(ValidationError):
            await run_ticket_triage(db_session, None, llm_replying("{}"))

    @pytest.mark.asyncio
    async def test_unknown_ticket(self, db_session):
        """Test an unknown id is not found."""
        # Act / Assert
        with pytest.raises(NotFoundError):
            await run_ticket_triage(db_session, uuid.uuid4(), llm_replying("{}"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"text": "<html>busy</html>"},
            {"json": [{"message": "queued"}]},
            {"json": {"choices": ["not a message"]}},
        ],
        ids=["html", "json-list", "malformed-choices"],
    )
    async def test_unreadable_model_reply(self, db_session, ticket, body):
        """Test a reply body the client cannot read fails the triage cleanly."""
        # Arrange
        transport = httpx.MockTransport(lambda request: httpx.Response(200, **body))
        client = LLMClient(api_url="https://llm.test", api_key="k", transport=transport)

        # Act
        result = await run_ticket_triage(db_session, ticket.id, client)

        # Assert
        assert result == {"success": False, "message": "AI analysis failed"}
        db_session.refresh(ticket)
        assert ticket.ai_triaged_at is None
