"""
Training Routes Integration Tests
=================================

Covers:
- Module creation scoped to the author's property, and global modules
- Module visibility across properties
- Assignment to users and departments, skipping open holders
- Start, failed attempt, pass and certificate issue
- Retakes after reassignment or certificate expiry
"""

from datetime import timedelta

import pytest

from staffhub.core.enums import NotificationType
from staffhub.db.base import utcnow
from staffhub.models.notification import Notification
from staffhub.models.training import TrainingAssignment, TrainingCertificate, TrainingModule


pytestmark = pytest.mark.integration


@pytest.fixture
def module(client, head_headers):
    response = client.post(
        "/training/modules",
        headers=head_headers,
        json={"title": "Check-in Excellence", "passing_score": 80, "certificate_validity_days": 365},
    )
    assert response.status_code == 201
    return response.json()


class TestModules:
    """Tests for /training/modules."""

    def test_module_scoped_to_author_property(self, module, grand_hotel):
        """Test property roles create modules for their own property."""
        # Assert
        assert module["property_id"] == str(grand_hotel.id)
        assert module["passing_score"] == 80

    def test_regional_module_is_global(self, client, admin_headers):
        """Test regional roles create modules for every property."""
        # Act
        response = client.post("/training/modules", headers=admin_headers, json={"title": "Code of Conduct"})

        # Assert
        assert response.json()["property_id"] is None

    def test_staff_cannot_create(self, client, staff_headers):
        """Test staff cannot author modules."""
        # Act
        response = client.post("/training/modules", headers=staff_headers, json={"title": "DIY"})

        # Assert
        assert response.status_code == 403

    def test_visibility_across_properties(self, client, db_session, module, seaside_headers, staff_headers):
        """Test property modules stay at their property and global ones show everywhere."""
        # Arrange
        db_session.add(TrainingModule(title="Fire Safety"))
        db_session.commit()

        # Act
        grand = client.get("/training/modules", headers=staff_headers).json()
        seaside = client.get("/training/modules", headers=seaside_headers).json()

        # Assert
        assert [m["title"] for m in grand["modules"]] == ["Check-in Excellence", "Fire Safety"]
        assert [m["title"] for m in seaside["modules"]] == ["Fire Safety"]

    def test_foreign_module_denied(self, client, module, seaside_headers):
        """Test another property's module is denied."""
        # Act
        response = client.get(f"/training/modules/{module['id']}", headers=seaside_headers)

        # Assert
        assert response.status_code == 403

    def test_property_role_cannot_edit_global(self, client, db_session, manager_headers):
        """Test global modules are edited by regional roles only."""
        # Arrange
        shared = TrainingModule(title="Anti-Bribery")
        db_session.add(shared)
        db_session.commit()

        # Act
        response = client.patch(f"/training/modules/{shared.id}", headers=manager_headers, json={"passing_score": 50})

        # Assert
        assert response.status_code == 422


class TestAssignments:
    """Tests for POST /training/modules/{id}/assign."""

    def test_assign_department(self, client, db_session, module, head_headers, front_office, staff_user):
        """Test everyone in the department is assigned and notified."""
        # Act
        response = client.post(
            f"/training/modules/{module['id']}/assign",
            headers=head_headers,
            json={"target_type": "department", "target_id": str(front_office.id), "deadline": "2026-12-01T00:00:00Z"},
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["assigned"] == 2
        notified = {n.user_id for n in db_session.query(Notification).filter(
            Notification.type == NotificationType.TRAINING_ASSIGNED
        )}
        assert staff_user.id in notified

    def test_open_holders_skipped(self, client, module, head_headers, staff_user):
        """Test a second assignment to the same user is skipped."""
        # Arrange
        body = {"target_type": "user", "target_id": str(staff_user.id)}
        client.post(f"/training/modules/{module['id']}/assign", headers=head_headers, json=body)

        # Act
        response = client.post(f"/training/modules/{module['id']}/assign", headers=head_headers, json=body)

        # Assert
        assert response.json()["assigned"] == 0

    def test_foreign_user(self, client, module, head_headers, seaside_staff):
        """Test users at other properties cannot be assigned."""
        # Act
        response = client.post(
            f"/training/modules/{module['id']}/assign",
            headers=head_headers,
            json={"target_type": "user", "target_id": str(seaside_staff.id)},
        )

        # Assert
        assert response.status_code == 403

    def test_target_required(self, client, module, head_headers):
        """Test non-"all" targets need an id."""
        # Act
        response = client.post(
            f"/training/modules/{module['id']}/assign", headers=head_headers, json={"target_type": "user"}
        )

        # Assert
        assert response.status_code == 422


class TestProgress:
    """Tests for start and complete."""

    def test_complete_requires_start(self, client, module, staff_headers):
        """Test a module must be started first."""
        # Act
        response = client.post(
            f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 90}
        )

        # Assert
        assert response.status_code == 422

    def test_fail_then_pass(self, client, module, head_headers, staff_user, staff_headers):
        """Test a failing score keeps progress open and a pass issues a certificate."""
        # Arrange
        client.post(
            f"/training/modules/{module['id']}/assign",
            headers=head_headers,
            json={"target_type": "user", "target_id": str(staff_user.id)},
        )
        started = client.post(f"/training/modules/{module['id']}/start", headers=staff_headers)

        # Act
        failed = client.post(
            f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 60}
        ).json()
        passed = client.post(
            f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 85}
        ).json()

        # Assert
        assert started.json()["status"] == "in_progress"
        assert failed["passed"] is False
        assert failed["certificate"] is None
        assert passed["passed"] is True
        assert passed["progress"]["status"] == "completed"
        assert passed["certificate"]["certificate_no"].startswith("CERT-")
        assert passed["certificate"]["expires_at"] is not None
        assignments = client.get("/training/assignments/mine", headers=staff_headers).json()["assignments"]
        assert assignments[0]["completed_at"] is not None
        certificates = client.get("/training/certificates/mine", headers=staff_headers).json()
        assert len(certificates["certificates"]) == 1

    def test_complete_twice(self, client, module, staff_headers):
        """Test a completed module cannot be completed again."""
        # Arrange
        client.post(f"/training/modules/{module['id']}/start", headers=staff_headers)
        client.post(f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 100})

        # Act
        response = client.post(
            f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 100}
        )

        # Assert
        assert response.status_code == 422

    def test_reassigned_module_can_be_retaken(self, client, db_session, module, head_headers, staff_user, staff_headers):
        """Test assigning a completed module again reopens it for a new attempt."""
        # Arrange
        body = {"target_type": "user", "target_id": str(staff_user.id)}
        client.post(f"/training/modules/{module['id']}/assign", headers=head_headers, json=body)
        client.post(f"/training/modules/{module['id']}/start", headers=staff_headers)
        client.post(f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 90})
        reassigned = client.post(f"/training/modules/{module['id']}/assign", headers=head_headers, json=body).json()

        # Act
        restarted = client.post(f"/training/modules/{module['id']}/start", headers=staff_headers).json()
        retake = client.post(
            f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 95}
        )

        # Assert
        assert reassigned["assigned"] == 1
        assert restarted["status"] == "in_progress"
        assert retake.status_code == 200
        assert retake.json()["passed"] is True
        open_assignments = db_session.query(TrainingAssignment).filter(
            TrainingAssignment.assigned_to_user_id == staff_user.id,
            TrainingAssignment.completed_at.is_(None),
        ).count()
        assert open_assignments == 0
        assert len(client.get("/training/certificates/mine", headers=staff_headers).json()["certificates"]) == 2

    def test_lapsed_certificate_reopens(self, client, db_session, module, staff_user, staff_headers):
        """Test an expired certificate lets the module be started again."""
        # Arrange
        client.post(f"/training/modules/{module['id']}/start", headers=staff_headers)
        client.post(f"/training/modules/{module['id']}/complete", headers=staff_headers, json={"quiz_score": 90})
        certificate = db_session.query(TrainingCertificate).filter(TrainingCertificate.user_id == staff_user.id).one()
        certificate.expires_at = utcnow() - timedelta(days=1)
        db_session.commit()

        # Act
        restarted = client.post(f"/training/modules/{module['id']}/start", headers=staff_headers).json()

        # Assert
        assert restarted["status"] == "in_progress"
        assert restarted["quiz_score"] is None
