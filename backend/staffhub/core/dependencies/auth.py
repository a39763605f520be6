"""
Authentication Dependencies Module
==================================

FastAPI dependencies for authentication and profile extraction.

Features:
- JWT token validation
- Profile extraction from token
- Account status verification
- Service key check for scheduler-invoked job endpoints

Usage:
    @router.get("/protected")
    def protected_route(user: Profile = Depends(get_current_user)):
        return {"user": user.email}
"""

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from staffhub.core.config import settings
from staffhub.core.exceptions import (
    TokenExpiredError,
    TokenVersionMismatchError,
    AccountLockedError,
    AccountDisabledError,
    TokenInvalidError,
    ServiceKeyError,
    StaffHubException,
)
from staffhub.core.logging import get_logger, security_logger, tenant_id_context, user_id_context
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.services.auth_service import AuthService

# Initialize logger
logger = get_logger(__name__)


# =====================================
# OAuth2 Scheme
# =====================================

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/auth/login",
    auto_error=True,
    description="OAuth2 token for authentication",
)


class OptionalOAuth2PasswordBearer(OAuth2PasswordBearer):
    """OAuth2 scheme that doesn't raise error if token is missing."""

    async def __call__(self, request: Request) -> Optional[str]:
        try:
            return await super().__call__(request)
        except HTTPException:
            return None


optional_oauth2_scheme = OptionalOAuth2PasswordBearer(
    tokenUrl="/auth/login",
    auto_error=False,
)


def _bind_request_context(request: Request, user: Profile) -> None:
    tenant = str(user.tenant_id) if user.tenant_id else None
    request.state.user_id = str(user.id)
    request.state.tenant_id = tenant
    user_id_context.set(str(user.id))
    tenant_id_context.set(tenant)


# =====================================
# Get Current User
# =====================================

def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    """
    Validate JWT and return the current profile from the database.

    Security checks performed:
    - Token signature, expiry, issuer and audience
    - Token type (must be access token)
    - Token version (revocation)
    - Account status (locked/disabled)

    Raises:
        HTTPException: If authentication fails
    """
    auth_service = AuthService(db)

    try:
        user = auth_service.validate_access_token(token)
        _bind_request_context(request, user)
        return user

    except (TokenInvalidError, TokenExpiredError) as e:
        logger.warning(
            "Invalid token presented",
            extra={"reason": e.message}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except TokenVersionMismatchError:
        security_logger.log_token_invalid(
            reason="token_version_mismatch",
            ip_address=request.client.host if request.client else "unknown"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been invalidated. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except AccountLockedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is locked. Please contact your administrator.",
        )

    except AccountDisabledError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been disabled. Please contact your administrator.",
        )


def get_current_user_optional(
    request: Request,
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[Profile]:
    """
    Get current profile if authenticated, otherwise return None.
    """
    if token is None:
        return None

    try:
        user = AuthService(db).validate_access_token(token)
    except StaffHubException:
        return None
    _bind_request_context(request, user)
    return user


def get_current_active_user(
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    """
    Get current profile and verify the account is active.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )
    return current_user


# =====================================
# Request Context Dependency
# =====================================

def get_request_context(
    request: Request,
    current_user: Profile = Depends(get_current_user),
) -> dict:
    """
    Request context with profile and property information, for audit logs.
    """
    return {
        "user_id": str(current_user.id),
        "tenant_id": str(current_user.tenant_id) if current_user.tenant_id else None,
        "email": current_user.email,
        "role": current_user.role.value if current_user.role else None,
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }


# =====================================
# Service Key (scheduled jobs)
# =====================================

def require_service_key(request: Request) -> None:
    """
    Require `Authorization: Bearer <SERVICE_API_KEY>`.

    An unset key rejects every call.

    Raises:
        ServiceKeyError: rendered as 401 {"error": "Unauthorized"}
    """
    header = request.headers.get("authorization", "")
    scheme, _, supplied = header.partition(" ")
    expected = settings.SERVICE_API_KEY

    if not expected or scheme.lower() != "bearer" or not hmac.compare_digest(supplied.strip(), expected):
        security_logger.log_service_key_rejected(
            endpoint=request.url.path,
            ip_address=request.client.host if request.client else "unknown",
        )
        raise ServiceKeyError()
