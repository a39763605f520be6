"""
Authentication Routes Integration Tests
========================================

Integration tests for authentication endpoints including:
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET /auth/verify
- GET /auth/me
- POST /auth/change-password
"""

import pytest
from fastapi.testclient import TestClient

from staffhub.core.config import settings
from staffhub.models.user import Profile


pytestmark = pytest.mark.integration


def _login(client, email, password):
    return client.post("/auth/login", json={"email": email, "password": password})


class TestLoginEndpoint:
    """Integration tests for POST /auth/login endpoint."""

    def test_login_success(self, client: TestClient, staff_user: Profile, test_password: str):
        """Test successful login with valid credentials."""
        # Act
        response = _login(client, staff_user.email, test_password)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_login_invalid_email(self, client: TestClient):
        """Test login with non-existent email."""
        # Act
        response = _login(client, "nobody@staffhub.io", "SomePassword123!")

        # Assert
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_invalid_password(self, client: TestClient, staff_user: Profile):
        """Test login with wrong password."""
        # Act
        response = _login(client, staff_user.email, "WrongPassword123!")

        # Assert
        assert response.status_code == 401

    def test_login_locks_account(self, client: TestClient, staff_user: Profile, test_password: str):
        """Test repeated failures lock the account."""
        # Arrange
        for _ in range(settings.MAX_LOGIN_ATTEMPTS):
            _login(client, staff_user.email, "WrongPassword123!")

        # Act
        response = _login(client, staff_user.email, test_password)

        # Assert
        assert response.status_code == 403
        assert "locked" in response.json()["detail"]

    def test_login_disabled_account(self, client, db_session, staff_user, test_password):
        """Test disabled accounts get 403."""
        # Arrange
        staff_user.is_active = False
        db_session.commit()

        # Act
        response = _login(client, staff_user.email, test_password)

        # Assert
        assert response.status_code == 403
        assert "disabled" in response.json()["detail"]

    def test_login_malformed_email(self, client: TestClient):
        """Test malformed emails fail validation."""
        # Act
        response = _login(client, "not-an-email", "SomePassword123!")

        # Assert
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestRefreshEndpoint:
    """Integration tests for POST /auth/refresh endpoint."""

    def test_refresh_success(self, client: TestClient, staff_user: Profile, test_password: str):
        """Test a refresh token yields a new pair."""
        # Arrange
        tokens = _login(client, staff_user.email, test_password).json()

        # Act
        response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        # Assert
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_refresh_with_access_token(self, client: TestClient, staff_user: Profile, test_password: str):
        """Test access tokens cannot be used to refresh."""
        # Arrange
        tokens = _login(client, staff_user.email, test_password).json()

        # Act
        response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})

        # Assert
        assert response.status_code == 401

    def test_refresh_garbage(self, client: TestClient):
        """Test malformed tokens are rejected."""
        # Act
        response = client.post("/auth/refresh", json={"refresh_token": "garbage"})

        # Assert
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired refresh token"


class TestLogoutEndpoint:
    """Integration tests for POST /auth/logout endpoint."""

    def test_logout_invalidates_tokens(self, client: TestClient, staff_user: Profile, test_password: str):
        """Test tokens stop working after logout."""
        # Arrange
        tokens = _login(client, staff_user.email, test_password).json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        # Act
        response = client.post("/auth/logout", headers=headers)

        # Assert
        assert response.json() == {"message": "Successfully logged out"}
        me = client.get("/auth/me", headers=headers)
        assert me.status_code == 401
        assert me.json()["detail"] == "Token has been invalidated. Please log in again."

    def test_logout_requires_auth(self, client: TestClient):
        """Test logout without a token."""
        # Act
        response = client.post("/auth/logout")

        # Assert
        assert response.status_code == 401


class TestVerifyAndMe:
    """Integration tests for GET /auth/verify and GET /auth/me."""

    def test_verify(self, client, staff_user, staff_headers, grand_hotel):
        """Test verify reports role and tenant."""
        # Act
        response = client.get("/auth/verify", headers=staff_headers)

        # Assert
        data = response.json()
        assert data["valid"] is True
        assert data["role"] == "staff"
        assert data["tenant_id"] == str(grand_hotel.id)

    def test_verify_regional_has_no_tenant(self, client, admin_headers):
        """Test regional staff have no tenant."""
        # Act
        response = client.get("/auth/verify", headers=admin_headers)

        # Assert
        assert response.json()["tenant_id"] is None

    def test_me_includes_names(self, client, staff_headers):
        """Test the profile carries property and department names."""
        # Act
        response = client.get("/auth/me", headers=staff_headers)

        # Assert
        data = response.json()
        assert data["property_name"] == "Grand Hotel"
        assert data["department_name"] == "Front Office"
        assert "hashed_password" not in data

    def test_me_invalid_token(self, client: TestClient):
        """Test garbage tokens are rejected."""
        # Act
        response = client.get("/auth/me", headers={"Authorization": "Bearer nope"})

        # Assert
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"


class TestChangePassword:
    """Integration tests for POST /auth/change-password."""

    def test_change_password(self, client, staff_user, staff_headers, test_password):
        """Test the new password works and old tokens are revoked."""
        # Act
        response = client.post(
            "/auth/change-password",
            headers=staff_headers,
            json={"current_password": test_password, "new_password": "BrandNewPass456"},
        )

        # Assert
        assert response.status_code == 200
        assert client.get("/auth/me", headers=staff_headers).status_code == 401
        assert _login(client, staff_user.email, "BrandNewPass456").status_code == 200

    def test_wrong_current_password(self, client, staff_headers):
        """Test the current password must match."""
        # Act
        response = client.post(
            "/auth/change-password",
            headers=staff_headers,
            json={"current_password": "WrongPassword1", "new_password": "BrandNewPass456"},
        )

        # Assert
        assert response.status_code == 401

    def test_weak_new_password(self, client, staff_headers, test_password):
        """Test the password policy is enforced."""
        # Act
        response = client.post(
            "/auth/change-password",
            headers=staff_headers,
            json={"current_password": test_password, "new_password": "alllowercase"},
        )

        # Assert
        assert response.status_code == 422
