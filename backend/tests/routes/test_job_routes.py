"""
Job Route Tests
===============

Covers:
- Service key enforcement on every job endpoint
- Successful job responses, including preventive maintenance and daily workflows
- 400 / 404 failure bodies
- Client dependencies overridden for triage and email dispatch
"""

import uuid

import httpx
import pytest

from staffhub.main import app
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.routes.job_routes import get_email_client, get_llm_client
from staffhub.services.email_service import EmailClient, enqueue_email
from staffhub.services.llm_client import LLMClient


pytestmark = pytest.mark.integration

JOB_PATHS = [
    "/jobs/approval-escalation",
    "/jobs/generate-template-tasks",
    "/jobs/training-notifications",
    "/jobs/weekly-manager-report",
    "/jobs/preventive-maintenance",
    "/jobs/daily-workflows",
    "/jobs/send-emails",
]


class TestServiceKey:
    """Tests for scheduler authentication."""

    @pytest.mark.parametrize("path", JOB_PATHS)
    def test_missing_key(self, client, path):
        """Test calls without the key are rejected."""
        # Act
        response = client.post(path)

        # Assert
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_key(self, client):
        """Test a wrong key is rejected."""
        # Act
        response = client.post("/jobs/approval-escalation", headers={"Authorization": "Bearer nope"})

        # Assert
        assert response.status_code == 401

    def test_user_token_is_not_a_service_key(self, client, admin_headers):
        """Test user access tokens cannot run jobs."""
        # Act
        response = client.post("/jobs/approval-escalation", headers=admin_headers)

        # Assert
        assert response.status_code == 401


class TestJobEndpoints:
    """Tests for job responses."""

    def test_escalation(self, client, service_headers):
        """Test the escalation job reports its count."""
        # Act
        response = client.post("/jobs/approval-escalation", headers=service_headers)

        # Assert
        assert response.status_code == 200
        assert response.json() == {"success": True, "approvals_escalated": 0}

    def test_training_notifications(self, client, service_headers):
        """Test the training job message."""
        # Act
        response = client.post("/jobs/training-notifications", headers=service_headers)

        # Assert
        assert response.json()["message"] == "Training notifications processed"

    def test_weekly_report(self, client, service_headers):
        """Test the weekly report message."""
        # Act
        response = client.post("/jobs/weekly-manager-report", headers=service_headers)

        # Assert
        assert response.json() == {"processed": 0, "message": "Manager reports generated"}

    def test_preventive_maintenance(self, client, service_headers):
        """Test the preventive maintenance job with nothing due."""
        # Act
        response = client.post("/jobs/preventive-maintenance", headers=service_headers)

        # Assert
        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 0, "results": []}

    def test_daily_workflows(self, client, service_headers):
        """Test the daily workflows report each workflow."""
        # Act
        response = client.post("/jobs/daily-workflows", headers=service_headers)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["executed"] == 2
        assert [r["workflow"] for r in data["results"]] == ["notify_overdue_tasks", "send_training_reminders"]
        assert {r["status"] for r in data["results"]} == {"completed"}

    def test_batches_bad_action(self, client, service_headers):
        """Test unknown actions fail schema validation."""
        # Act
        response = client.post("/jobs/notification-batches", headers=service_headers, json={"action": "explode"})

        # Assert
        assert response.status_code == 422

    def test_batches_missing_batch_id(self, client, service_headers):
        """Test a missing batch id answers 400."""
        # Act
        response = client.post(
            "/jobs/notification-batches", headers=service_headers, json={"action": "process_batch"}
        )

        # Assert
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "batch_id is required"}

    def test_batches_unknown_batch(self, client, service_headers):
        """Test an unknown batch answers 404."""
        # Act
        response = client.post(
            "/jobs/notification-batches",
            headers=service_headers,
            json={"action": "get_status", "batch_id": str(uuid.uuid4())},
        )

        # Assert
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestClientBackedJobs:
    """Tests for triage and email dispatch with stubbed clients."""

    @pytest.fixture
    def stub_clients(self):
        def llm_handler(request):
            return httpx.Response(200, json={"choices": [{"message": {
                "content": '{"priority": "critical", "suggested_category": "safety", "ai_notes": "Isolate area"}'
            }}]})

        app.dependency_overrides[get_llm_client] = lambda: LLMClient(
            api_url="https://llm.test", api_key="k", transport=httpx.MockTransport(llm_handler)
        )
        app.dependency_overrides[get_email_client] = lambda: EmailClient(
            api_url="https://mail.test",
            api_key="re_test",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "msg_1"})),
        )
        yield
        app.dependency_overrides.pop(get_llm_client, None)
        app.dependency_overrides.pop(get_email_client, None)

    def test_triage_ticket(self, client, db_session, service_headers, grand_hotel, stub_clients):
        """Test triage applies the model suggestion."""
        # Arrange
        ticket = MaintenanceTicket(ticket_no=7, title="Sparks from socket", property_id=grand_hotel.id)
        db_session.add(ticket)
        db_session.commit()

        # Act
        response = client.post(
            "/jobs/auto-triage-ticket", headers=service_headers, json={"ticket_id": str(ticket.id)}
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["triage"]["priority"] == "critical"
        assert response.json()["triage"]["category"] == "safety"

    def test_triage_missing_ticket_id(self, client, service_headers, stub_clients):
        """Test a missing ticket id answers 400."""
        # Act
        response = client.post("/jobs/auto-triage-ticket", headers=service_headers, json={})

        # Assert
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing ticket_id"}

    def test_send_emails(self, client, db_session, service_headers, stub_clients):
        """Test queued emails are dispatched."""
        # Arrange
        enqueue_email(db_session, "sam@grandhotel.com", "Hello", "Body")
        db_session.commit()

        # Act
        response = client.post("/jobs/send-emails", headers=service_headers)

        # Assert
        assert response.json()["sent"] == 1
