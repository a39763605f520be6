"""
Authentication Routes Module
============================

Handles:
- Staff login with account lockout protection
- Token refresh
- Logout (token invalidation)
- Password change

Security Features:
- Property (tenant) claim in every token
- Account lockout handling
- Token version validation
- Rate limiting on login (middleware)
- Security logging
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.services.auth_service import AuthService
from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.exceptions import (
    InvalidCredentialsError,
    AccountLockedError,
    AccountDisabledError,
    TokenInvalidError,
    TokenExpiredError,
    TokenVersionMismatchError,
)
from staffhub.core.logging import get_logger
from staffhub.schemas import (
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    LogoutResponse,
    PasswordChangeRequest,
    ErrorResponse,
)

# Initialize logger
logger = get_logger(__name__)


# =====================================
# Router Setup
# =====================================

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"model": ErrorResponse, "description": "Authentication failed"},
        403: {"model": ErrorResponse, "description": "Access forbidden"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# =====================================
# Login Endpoint
# =====================================

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Staff Login",
    description="""
    Authenticate with email and password.

    Returns JWT access and refresh tokens on success.

    Security features:
    - Account locks after MAX_LOGIN_ATTEMPTS failed attempts
    - Rate limited per IP
    - All attempts are logged
    """,
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account locked or disabled"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
def login(
    request: Request,
    login_data: LoginRequest,
    db: Session = Depends(get_db),
) -> dict:
    """
    Authenticate a profile and return JWT tokens.

    Args:
        request: FastAPI request object
        login_data: Login credentials
        db: Database session

    Returns:
        Token response with access and refresh tokens

    Raises:
        HTTPException: On authentication failure
    """
    auth_service = AuthService(db)
    client_ip = _client_ip(request)

    try:
        user, tokens = auth_service.authenticate_user(
            email=login_data.email,
            password=login_data.password,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent", "unknown"),
        )

        logger.info(
            "User logged in successfully",
            extra={
                "user_id": str(user.id),
                "tenant_id": str(user.tenant_id) if user.tenant_id else None,
                "ip_address": client_ip,
            }
        )

        return tokens

    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except AccountLockedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is locked due to multiple failed login attempts. "
                   "Please contact your administrator.",
        )

    except AccountDisabledError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been disabled. Please contact your administrator.",
        )


# =====================================
# Refresh Token Endpoint
# =====================================

@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh Access Token",
    description="Exchange a valid refresh token for a new token pair.",
    responses={
        200: {"description": "Tokens refreshed successfully"},
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
        403: {"model": ErrorResponse, "description": "Account locked or disabled"},
    },
)
def refresh_token(
    request: Request,
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db),
) -> dict:
    auth_service = AuthService(db)

    try:
        return auth_service.refresh_tokens(refresh_data.refresh_token)

    except (TokenInvalidError, TokenExpiredError, TokenVersionMismatchError) as e:
        logger.warning(
            "Token refresh failed",
            extra={"reason": e.message, "ip_address": _client_ip(request)}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except AccountLockedError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is locked")

    except AccountDisabledError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account has been disabled")


# =====================================
# Logout Endpoint
# =====================================

@router.post(
    "/logout",
    response_model=LogoutResponse,
    summary="Logout",
    description="""
    Invalidate every token of the current profile.

    Increments the profile's token version, so access and refresh tokens
    issued earlier stop working on all devices.
    """,
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
def logout(
    request: Request,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    AuthService(db).logout(current_user)

    logger.info(
        "User logged out",
        extra={"user_id": str(current_user.id), "ip_address": _client_ip(request)}
    )

    return {"message": "Successfully logged out"}


# =====================================
# Verify / Me Endpoints
# =====================================

@router.get(
    "/verify",
    summary="Verify Token",
    description="Verify that the current access token is valid.",
    responses={
        200: {"description": "Token is valid"},
        401: {"model": ErrorResponse, "description": "Invalid token"},
    },
)
def verify_token(
    current_user: Profile = Depends(get_current_user),
) -> dict:
    return {
        "valid": True,
        "user_id": str(current_user.id),
        "email": current_user.email,
        "role": current_user.role.value,
        "tenant_id": str(current_user.tenant_id) if current_user.tenant_id else None,
    }


@router.get(
    "/me",
    summary="Get Current Profile",
    description="Get the authenticated staff member's profile.",
    responses={
        200: {"description": "Current profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
def get_me(
    current_user: Profile = Depends(get_current_user),
) -> dict:
    """
    Get current profile information.

    Args:
        current_user: Current authenticated profile

    Returns:
        Profile fields including property and department names
    """
    return current_user.to_dict()


# =====================================
# Password Change Endpoint
# =====================================

@router.post(
    "/change-password",
    response_model=TokenResponse,
    summary="Change Password",
    description="""
    Change the current password.

    Every existing token is invalidated; the response carries a fresh
    token pair for the current session.
    """,
    responses={
        200: {"description": "Password changed"},
        401: {"model": ErrorResponse, "description": "Current password incorrect"},
        422: {"model": ErrorResponse, "description": "Password policy violation"},
    },
)
def change_password(
    data: PasswordChangeRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return AuthService(db).change_password(current_user, data.current_password, data.new_password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )
