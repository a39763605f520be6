"""
Centralized Exception Handling Module
=====================================

Defines custom exception classes for the application.

Every service-level failure is raised as a StaffHubException subclass and
converted to a JSON response by the handlers registered in main.py.

Usage:
    raise NotFoundError("Leave request", str(leave_id))
    raise InvalidStatusTransitionError("task", "completed", "open", [])
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class StaffHubException(Exception):
    """
    Base exception class for StaffHub application.

    All custom exceptions should inherit from this class.
    """

    code = "GENERIC_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ==========================
# Authentication Exceptions
# ==========================

class AuthenticationError(StaffHubException):
    """Raised when authentication fails."""

    code = "ACCESS_DENIED"

    def __init__(
        self,
        message: str = "Could not validate credentials",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are invalid."""

    def __init__(self):
        super().__init__(message="Invalid email or password")


class TokenExpiredError(AuthenticationError):
    """Raised when a JWT token has expired."""

    def __init__(self, token_type: str = "access"):
        super().__init__(
            message=f"{token_type.capitalize()} token has expired",
            details={"token_type": token_type}
        )


class TokenInvalidError(AuthenticationError):
    """Raised when a JWT token is invalid."""

    def __init__(self, reason: str = "Invalid token"):
        super().__init__(
            message="Invalid token",
            details={"reason": reason}
        )


class TokenVersionMismatchError(AuthenticationError):
    """Raised when token version doesn't match user's current version."""

    def __init__(self):
        super().__init__(
            message="Token has been invalidated. Please log in again."
        )


class ServiceKeyError(AuthenticationError):
    """Raised when a job endpoint is called without the service key."""

    def __init__(self):
        super().__init__(message="Unauthorized")


# ==========================
# Authorization Exceptions
# ==========================

class AuthorizationError(StaffHubException):
    """Raised when user lacks required permissions."""

    code = "ACCESS_DENIED"

    def __init__(
        self,
        message: str = "Insufficient permissions",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class RoleNotAuthorizedError(AuthorizationError):
    """Raised when user's role is not authorized for the action."""

    def __init__(self, required_roles: list):
        super().__init__(
            message="Your role is not authorized for this action",
            details={"required_roles": required_roles}
        )


class TenantIsolationError(AuthorizationError):
    """Raised when a property-scoped user touches another property's data."""

    def __init__(self):
        super().__init__(
            message="Access denied: resource belongs to a different property"
        )


# ==========================
# Account Status Exceptions
# ==========================

class AccountError(StaffHubException):
    """Base exception for account-related issues."""

    code = "ACCESS_DENIED"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_403_FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
        )


class AccountLockedError(AccountError):
    """Raised when account is locked due to failed attempts."""

    def __init__(self):
        super().__init__(
            message="Account is locked due to multiple failed login attempts. "
                    "Please contact your administrator or try again later.",
        )


class AccountDisabledError(AccountError):
    """Raised when account is disabled."""

    def __init__(self):
        super().__init__(
            message="Account has been disabled. Please contact your administrator."
        )


# ==========================
# Resource Exceptions
# ==========================

class NotFoundError(StaffHubException):
    """Raised when a resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", identifier: Optional[str] = None):
        message = f"{resource} not found"
        details = {"resource": resource}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class UserNotFoundError(NotFoundError):
    """Raised when a profile is not found."""

    def __init__(self, identifier: Optional[str] = None):
        super().__init__(resource="User", identifier=identifier)


class ConflictError(StaffHubException):
    """Raised when a write would duplicate an existing resource."""

    code = "DUPLICATE_ENTRY"

    def __init__(self, message: str = "Resource already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


# ==========================
# Validation Exceptions
# ==========================

class ValidationError(StaffHubException):
    """Raised when validation fails."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class EmailAlreadyExistsError(ConflictError):
    """Raised when attempting to create a profile with an existing email."""

    def __init__(self):
        super().__init__(
            message="An account with this email already exists"
        )


class InvalidStatusTransitionError(StaffHubException):
    """Raised when an entity is moved to a status its lifecycle forbids."""

    code = "VALIDATION_ERROR"

    def __init__(self, entity_type: str, current_status: str, new_status: str, allowed: List[str]):
        allowed_text = ", ".join(allowed) if allowed else "none (terminal state)"
        super().__init__(
            message=(
                f'Invalid status transition for {entity_type}: "{current_status}" → "{new_status}". '
                f'Valid transitions from "{current_status}": {allowed_text}'
            ),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={
                "entity_type": entity_type,
                "current_status": current_status,
                "new_status": new_status,
                "allowed": allowed,
            },
        )


class WorkflowError(StaffHubException):
    """Raised when a request workflow action cannot be applied."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


# ==========================
# Rate Limiting Exceptions
# ==========================

class RateLimitError(StaffHubException):
    """Raised when rate limit is exceeded."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message="Too many requests. Please try again later.",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"retry_after_seconds": retry_after}
        )


# ==========================
# External Service Exceptions
# ==========================

class ExternalServiceError(StaffHubException):
    """Raised when an outbound HTTP dependency (LLM, email API) fails."""

    code = "NETWORK_ERROR"

    def __init__(self, service: str, message: str = "External service unavailable"):
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service},
        )


# ==========================
# Helper Functions
# ==========================

def exception_to_http_exception(exc: StaffHubException) -> HTTPException:
    """
    Convert a StaffHubException to FastAPI HTTPException.
    """
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "message": exc.message,
            "code": exc.code,
            "details": exc.details,
        }
    )
