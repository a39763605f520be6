"""
Health and Protected Access Integration Tests
=============================================

Covers:
- Basic, detailed and readiness health checks
- Degraded reporting when the database is unreachable
- Authentication requirement across resource routes
- Expired, unknown-user and revoked tokens
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from staffhub.services.auth_service import AuthService


pytestmark = pytest.mark.integration


class TestHealth:
    """Tests for /, /health and /ready."""

    def test_basic_health(self, client):
        """Test the root endpoint reports service identity."""
        # Act
        response = client.get("/")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "testing"
        assert {"service", "version"} <= set(data)

    def test_detailed_health(self, client):
        """Test /health includes the database check."""
        # Act
        response = client.get("/health")

        # Assert
        assert response.json()["checks"] == {"database": "healthy"}

    def test_ready(self, client):
        """Test /ready answers when the database is reachable."""
        # Act
        response = client.get("/ready")

        # Assert
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_database_down(self, client, monkeypatch):
        """Test health degrades and readiness fails without a database."""
        # Arrange
        monkeypatch.setattr("staffhub.main.check_database_connection", lambda: False)

        # Act
        health = client.get("/health")
        ready = client.get("/ready")

        # Assert
        assert health.json()["status"] == "degraded"
        assert health.json()["checks"]["database"] == "unhealthy"
        assert ready.status_code == 503
        assert ready.json()["reason"] == "database_unavailable"


class TestProtectedAccess:
    """Tests for the authentication requirement on resource routes."""

    @pytest.mark.parametrize(
        "path",
        [
            "/auth/me",
            "/tasks",
            "/leave/mine",
            "/training/modules",
            "/knowledge/documents",
            "/maintenance/tickets",
            "/notifications",
        ],
    )
    def test_requires_token(self, client, path):
        """Test resource routes reject anonymous requests."""
        # Act
        response = client.get(path)

        # Assert
        assert response.status_code == 401

    def test_expired_token(self, client, staff_user):
        """Test expired access tokens are rejected."""
        # Arrange
        token = AuthService.create_access_token(
            user_id=staff_user.id,
            tenant_id=staff_user.property_id,
            token_version=staff_user.token_version,
            expires_delta=timedelta(minutes=-1),
        )

        # Act
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        # Assert
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"

    def test_unknown_user(self, client, grand_hotel):
        """Test tokens for profiles that do not exist are rejected."""
        # Arrange
        token = AuthService.create_access_token(user_id=uuid4(), tenant_id=grand_hotel.id, token_version=0)

        # Act
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        # Assert
        assert response.status_code == 401

    def test_revoked_token(self, client, db_session, staff_user, staff_headers):
        """Test bumping the token version invalidates issued tokens."""
        # Arrange
        staff_user.token_version += 1
        db_session.commit()

        # Act
        response = client.get("/auth/me", headers=staff_headers)

        # Assert
        assert response.status_code == 401
        assert "invalidated" in response.json()["detail"]
