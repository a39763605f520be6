"""
Cross-Property Isolation Integration Tests
==========================================

Integration tests for property isolation including:
- Staff account lookup across properties
- Messages and broadcasts bounded by property
- Announcements and tasks scoped to their property
- Regional roles reaching every property
"""

import pytest
from fastapi.testclient import TestClient

from staffhub.models.task import Task
from staffhub.models.user import Profile
from staffhub.services.auth_service import AuthService


pytestmark = pytest.mark.tenant


class TestCrossPropertyAccountAccess:
    """Tests for /admin/users/{id} across properties."""

    def test_manager_cannot_read_other_property_user(
        self,
        client: TestClient,
        manager_headers: dict,
        seaside_staff: Profile,
    ):
        """Test a property manager cannot open an account at another property."""
        # Act
        response = client.get(f"/admin/users/{seaside_staff.id}", headers=manager_headers)

        # Assert
        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_regional_admin_reads_any_user(
        self,
        client: TestClient,
        admin_headers: dict,
        seaside_staff: Profile,
    ):
        """Test regional admins can open accounts at every property."""
        # Act
        response = client.get(f"/admin/users/{seaside_staff.id}", headers=admin_headers)

        # Assert
        assert response.status_code == 200
        assert response.json()["id"] == str(seaside_staff.id)


class TestCrossPropertyMessaging:
    """Tests for message delivery across properties."""

    def test_direct_message_blocked(self, client: TestClient, seaside_headers: dict, staff_user: Profile):
        """Test staff cannot message colleagues at another property."""
        # Act
        response = client.post(
            "/messages",
            headers=seaside_headers,
            json={"recipient_id": str(staff_user.id), "body": "Hello from the coast"},
        )

        # Assert
        assert response.status_code == 403

    def test_regional_message_allowed(self, client: TestClient, regional_hr_headers: dict, seaside_staff: Profile):
        """Test regional roles can message anyone."""
        # Act
        response = client.post(
            "/messages",
            headers=regional_hr_headers,
            json={"recipient_id": str(seaside_staff.id), "body": "Please update your records"},
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["sent"] == 1

    def test_broadcast_stays_in_property(
        self,
        client: TestClient,
        manager_headers: dict,
        staff_user: Profile,
        department_head: Profile,
        seaside_staff: Profile,
    ):
        """Test a manager's broadcast only reaches their own property."""
        # Act
        response = client.post(
            "/messages",
            headers=manager_headers,
            json={"message_type": "broadcast", "subject": "Fire drill", "body": "Thursday at 10:00"},
        )

        # Assert
        recipients = {m["recipient_id"] for m in response.json()["messages"]}
        assert recipients == {str(staff_user.id), str(department_head.id)}

    def test_staff_cannot_broadcast(self, client: TestClient, staff_headers: dict):
        """Test broadcasting needs a manager role."""
        # Act
        response = client.post("/messages", headers=staff_headers, json={"message_type": "broadcast", "body": "Hi all"})

        # Assert
        assert response.status_code == 403


class TestCrossPropertyContent:
    """Tests for announcements and tasks across properties."""

    def test_announcement_scoped_to_property(
        self,
        client: TestClient,
        manager_headers: dict,
        staff_headers: dict,
        seaside_headers: dict,
    ):
        """Test property announcements are hidden from other properties."""
        # Arrange
        client.post(
            "/announcements",
            headers=manager_headers,
            json={"title": "Lobby refit", "content": "The lobby closes on Monday."},
        )

        # Act
        grand = client.get("/announcements", headers=staff_headers).json()
        seaside = client.get("/announcements", headers=seaside_headers).json()

        # Assert
        assert [a["title"] for a in grand["announcements"]] == ["Lobby refit"]
        assert seaside["total"] == 0

    def test_manager_cannot_announce_for_other_property(
        self,
        client: TestClient,
        manager_headers: dict,
        seaside_resort,
    ):
        """Test managers cannot target another property."""
        # Act
        response = client.post(
            "/announcements",
            headers=manager_headers,
            json={"title": "Pool closed", "content": "Maintenance", "property_id": str(seaside_resort.id)},
        )

        # Assert
        assert response.status_code == 403

    def test_task_hidden_from_other_property(
        self,
        client: TestClient,
        db_session,
        staff_user: Profile,
        grand_hotel,
        seaside_manager: Profile,
    ):
        """Test another property's manager can neither list nor open a task."""
        # Arrange
        task = Task(title="Polish brass", assigned_to_id=staff_user.id, property_id=grand_hotel.id)
        db_session.add(task)
        db_session.commit()
        token = AuthService.create_access_token(
            user_id=seaside_manager.id,
            tenant_id=seaside_manager.property_id,
            token_version=seaside_manager.token_version,
        )

        # Act
        response = client.get(f"/tasks/{task.id}", headers={"Authorization": f"Bearer {token}"})
        listing = client.get("/tasks", headers={"Authorization": f"Bearer {token}"})

        # Assert
        assert response.status_code == 403
        assert listing.json()["total"] == 0
