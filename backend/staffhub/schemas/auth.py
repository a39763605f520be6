"""
Authentication Schemas Module
=============================

Pydantic models for authentication request/response validation.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# ==========================
# Login Schemas
# ==========================

class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="Staff email address",
        examples=["front.desk@grandhotel.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        description="Account password",
        examples=["SecureP@ss123"]
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "front.desk@grandhotel.com",
                "password": "SecureP@ss123"
            }
        }
    )


class TokenResponse(BaseModel):
    """Token response schema for login/refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: Optional[int] = Field(default=None, description="Access token expiration in seconds")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "bearer",
                "expires_in": 900
            }
        }
    )


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class LogoutResponse(BaseModel):
    """Logout response schema."""

    message: str = Field(default="Successfully logged out", description="Logout confirmation message")


class PasswordChangeRequest(BaseModel):
    """Schema for password change request."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=128, description="New password")

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Validate password meets security requirements."""
        errors = []

        if not re.search(r"[A-Z]", v):
            errors.append("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            errors.append("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            errors.append("Password must contain at least one digit")

        if errors:
            raise ValueError("; ".join(errors))

        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "current_password": "OldP@ss123",
                "new_password": "NewSecureP@ss456"
            }
        }
    )


# ==========================
# Error Schemas
# ==========================

class ErrorResponse(BaseModel):
    """Standard error response schema."""

    message: str = Field(..., description="Error message")
    code: Optional[str] = Field(default=None, description="Error category")
    details: Optional[dict] = Field(default=None, description="Additional error details")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Leave request not found",
                "code": "NOT_FOUND",
                "details": {"resource": "Leave request"}
            }
        }
    )
