"""
Admin Routes Integration Tests
==============================

Covers:
- Dashboard access and scoping
- Property listing, creation, name conflicts and deactivation
- Department creation inside and outside the caller's property
- Staff listing, creation, role ceilings and welcome email
- Role changes revoking tokens, self-deactivation, unlock
- Reporting line cycle detection
"""

import pytest

from staffhub.models.notification import EmailOutbox


pytestmark = pytest.mark.rbac


class TestAdminDashboard:
    """Tests for GET /admin/dashboard."""

    def test_staff_forbidden(self, client, staff_headers):
        """Test staff cannot open the admin dashboard."""
        # Act
        response = client.get("/admin/dashboard", headers=staff_headers)

        # Assert
        assert response.status_code == 403

    def test_manager_sees_own_property(self, client, manager_headers, staff_user, seaside_staff):
        """Test counts are scoped to the manager's property."""
        # Act
        response = client.get("/admin/dashboard", headers=manager_headers)

        # Assert
        assert response.status_code == 200
        stats = response.json()["statistics"]
        assert stats["total_properties"] == 1
        assert stats["total_users"] == 3
        assert stats["users_by_role"] == {"property_manager": 1, "department_head": 1, "staff": 1}

    def test_regional_sees_everything(self, client, admin_headers, staff_user, seaside_staff):
        """Test regional admins count every property."""
        # Act
        stats = client.get("/admin/dashboard", headers=admin_headers).json()["statistics"]

        # Assert
        assert stats["total_properties"] == 2
        assert stats["total_users"] == 5


class TestProperties:
    """Tests for /admin/properties."""

    def test_manager_lists_own_property(self, client, manager_headers, seaside_resort):
        """Test non-regional roles only see their property."""
        # Act
        response = client.get("/admin/properties", headers=manager_headers)

        # Assert
        assert [p["name"] for p in response.json()["properties"]] == ["Grand Hotel"]

    def test_admin_creates_property(self, client, admin_headers):
        """Test regional admins create properties."""
        # Act
        response = client.post(
            "/admin/properties",
            headers=admin_headers,
            json={"name": "Mountain Lodge", "property_code": "ML", "city": "Covilha"},
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["name"] == "Mountain Lodge"

    def test_duplicate_name_conflict(self, client, admin_headers, grand_hotel):
        """Test property names are unique regardless of case."""
        # Act
        response = client.post("/admin/properties", headers=admin_headers, json={"name": "grand hotel"})

        # Assert
        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ENTRY"

    def test_manager_cannot_create_property(self, client, manager_headers):
        """Test property creation needs a regional role."""
        # Act
        response = client.post("/admin/properties", headers=manager_headers, json={"name": "Side Hustle Inn"})

        # Assert
        assert response.status_code == 403

    def test_foreign_property_denied(self, client, manager_headers, seaside_resort):
        """Test reading another property is a tenant violation."""
        # Act
        response = client.get(f"/admin/properties/{seaside_resort.id}", headers=manager_headers)

        # Assert
        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_deactivate_hides_property(self, client, admin_headers, seaside_resort, grand_hotel):
        """Test deactivated properties drop out of the default listing."""
        # Act
        response = client.delete(f"/admin/properties/{seaside_resort.id}", headers=admin_headers)

        # Assert
        assert response.json()["is_active"] is False
        active = client.get("/admin/properties", headers=admin_headers).json()["properties"]
        everything = client.get(
            "/admin/properties", headers=admin_headers, params={"include_inactive": True}
        ).json()["properties"]
        assert [p["name"] for p in active] == ["Grand Hotel"]
        assert len(everything) == 2


class TestDepartments:
    """Tests for /admin/departments."""

    def test_create_department(self, client, manager_headers, grand_hotel):
        """Test managers add departments to their property."""
        # Act
        response = client.post(
            "/admin/departments",
            headers=manager_headers,
            json={"property_id": str(grand_hotel.id), "name": "Spa"},
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["name"] == "Spa"

    def test_duplicate_department(self, client, manager_headers, grand_hotel, front_office):
        """Test department names are unique within a property."""
        # Act
        response = client.post(
            "/admin/departments",
            headers=manager_headers,
            json={"property_id": str(grand_hotel.id), "name": "front office"},
        )

        # Assert
        assert response.status_code == 409

    def test_foreign_property_department(self, client, manager_headers, seaside_resort):
        """Test managers cannot add departments elsewhere."""
        # Act
        response = client.post(
            "/admin/departments",
            headers=manager_headers,
            json={"property_id": str(seaside_resort.id), "name": "Spa"},
        )

        # Assert
        assert response.status_code == 403


class TestUsers:
    """Tests for /admin/users."""

    def test_staff_cannot_list(self, client, staff_headers):
        """Test staff lack the staff:read permission."""
        # Act
        response = client.get("/admin/users", headers=staff_headers)

        # Assert
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions for this action"

    def test_hr_lists_property_staff(self, client, hr_headers, staff_user, seaside_staff):
        """Test property HR only sees their property."""
        # Act
        response = client.get("/admin/users", headers=hr_headers)

        # Assert
        emails = {u["email"] for u in response.json()["users"]}
        assert "staff@grandhotel.com" in emails
        assert "staff@seasideresort.com" not in emails

    def test_search(self, client, hr_headers, staff_user, department_head):
        """Test the name/email search."""
        # Act
        response = client.get("/admin/users", headers=hr_headers, params={"search": "sam"})

        # Assert
        assert response.json()["total"] == 1
        assert response.json()["users"][0]["full_name"] == "Sam Staff"

    def test_create_user_queues_welcome(self, client, db_session, manager_headers, front_office):
        """Test new accounts land at the manager's property with a welcome email."""
        # Act
        response = client.post(
            "/admin/users",
            headers=manager_headers,
            json={
                "email": "New.Hire@GrandHotel.com",
                "password": "Welcome123",
                "full_name": "Nina New",
                "department_id": str(front_office.id),
            },
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.hire@grandhotel.com"
        assert data["property_id"] == str(front_office.property_id)
        outbox = db_session.query(EmailOutbox).one()
        assert outbox.template == "welcome"
        assert outbox.to_email == "new.hire@grandhotel.com"

    def test_cannot_grant_higher_role(self, client, manager_headers):
        """Test managers cannot create regional accounts."""
        # Act
        response = client.post(
            "/admin/users",
            headers=manager_headers,
            json={"email": "boss@grandhotel.com", "password": "Welcome123", "full_name": "Big Boss", "role": "regional_admin"},
        )

        # Assert
        assert response.status_code == 403

    def test_duplicate_email(self, client, manager_headers, staff_user):
        """Test emails are unique."""
        # Act
        response = client.post(
            "/admin/users",
            headers=manager_headers,
            json={"email": "STAFF@grandhotel.com", "password": "Welcome123", "full_name": "Dup"},
        )

        # Assert
        assert response.status_code == 409

    def test_department_from_other_property(self, client, manager_headers, seaside_front_office):
        """Test departments must belong to the account's property."""
        # Act
        response = client.post(
            "/admin/users",
            headers=manager_headers,
            json={
                "email": "mixup@grandhotel.com",
                "password": "Welcome123",
                "full_name": "Mix Up",
                "department_id": str(seaside_front_office.id),
            },
        )

        # Assert
        assert response.status_code == 422

    def test_role_change_revokes_tokens(self, client, manager_headers, staff_user, staff_headers):
        """Test promoting a user invalidates their tokens."""
        # Act
        response = client.patch(
            f"/admin/users/{staff_user.id}", headers=manager_headers, json={"role": "department_head"}
        )

        # Assert
        assert response.json()["role"] == "department_head"
        assert client.get("/auth/me", headers=staff_headers).status_code == 401

    def test_cannot_deactivate_self(self, client, manager_headers, property_manager):
        """Test admins cannot lock themselves out."""
        # Act
        response = client.patch(
            f"/admin/users/{property_manager.id}", headers=manager_headers, json={"is_active": False}
        )

        # Assert
        assert response.status_code == 422

    def test_unlock(self, client, db_session, manager_headers, staff_user):
        """Test unlocking clears the lockout."""
        # Arrange
        staff_user.is_locked = True
        staff_user.failed_attempts = 5
        db_session.commit()

        # Act
        response = client.post(f"/admin/users/{staff_user.id}/unlock", headers=manager_headers)

        # Assert
        assert response.json()["message"] == "Account unlocked successfully"
        db_session.refresh(staff_user)
        assert staff_user.is_locked is False
        assert staff_user.failed_attempts == 0

    def test_reporting_line_cycle(self, client, manager_headers, property_manager, staff_user):
        """Test a manager cannot report to their own report."""
        # Act
        response = client.put(
            f"/admin/users/{property_manager.id}/reporting-line",
            headers=manager_headers,
            json={"reporting_to": str(staff_user.id)},
        )

        # Assert
        assert response.status_code == 422
        assert "cycle" in response.json()["message"]

    def test_clear_reporting_line(self, client, manager_headers, staff_user):
        """Test a null manager clears the line."""
        # Act
        response = client.put(
            f"/admin/users/{staff_user.id}/reporting-line", headers=manager_headers, json={"reporting_to": None}
        )

        # Assert
        assert response.json()["reporting_to"] is None
