"""
Authentication Service Module
=============================

Consolidated authentication service handling:
- Password hashing using Argon2
- JWT Access & Refresh token creation with type discrimination
- Token decoding and validation
- Token version tracking for forced logout
- Account lockout management
- Password change

Security Features:
- Argon2id password hashing (memory-hard, resistant to GPU attacks)
- Token type discrimination (access vs refresh)
- Issuer and audience validation
- Token version for revocation support
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
from jose import jwt, JWTError
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, Argon2Error

from staffhub.models.user import Profile
from staffhub.core.config import settings
from staffhub.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
    TokenVersionMismatchError,
    AccountLockedError,
    AccountDisabledError,
    InvalidCredentialsError,
    ValidationError,
)
from staffhub.core.logging import get_logger, security_logger

# Initialize logger
logger = get_logger(__name__)


# ==========================
# Password Hasher Configuration
# ==========================

ph = PasswordHasher(
    time_cost=3,        # Number of passes
    memory_cost=65536,  # 64 MB memory
    parallelism=4,      # 4 parallel threads
    hash_len=32,        # 32-byte hash
    salt_len=16,        # 16-byte salt
)


# ==========================
# Token Types
# ==========================

class TokenType:
    """Token type constants for discrimination."""
    ACCESS = "access"
    REFRESH = "refresh"


def _tenant_claim(property_id: Optional[UUID]) -> Optional[str]:
    return str(property_id) if property_id else None


# ==========================
# Auth Service Class
# ==========================

class AuthService:
    """
    Authentication service handling all auth-related operations.

    Usage:
        auth_service = AuthService(db)
        profile, tokens = auth_service.authenticate_user(email, password)
    """

    def __init__(self, db: Session):
        self.db = db

    # --------------------------
    # Password Utilities
    # --------------------------

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using Argon2id."""
        return ph.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise
        """
        try:
            ph.verify(hashed_password, plain_password)
            return True
        except VerifyMismatchError:
            return False
        except Argon2Error as e:
            logger.warning(
                "Password verification error",
                extra={"error": str(e)}
            )
            return False

    # --------------------------
    # Token Creation
    # --------------------------

    @staticmethod
    def _encode(
        token_type: str,
        user_id: UUID,
        tenant_id: Optional[UUID],
        token_version: int,
        expires_delta: timedelta,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "tenant_id": _tenant_claim(tenant_id),
            "token_version": token_version,
            "type": token_type,
            "exp": now + expires_delta,
            "iat": now,
            "iss": settings.ISSUER,
            "aud": settings.AUDIENCE,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_access_token(
        user_id: UUID,
        tenant_id: Optional[UUID],
        token_version: int,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a JWT access token.

        Args:
            user_id: Profile UUID
            tenant_id: Property UUID (None for regional staff)
            token_version: Current token version for revocation
            expires_delta: Custom expiration time
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return AuthService._encode(TokenType.ACCESS, user_id, tenant_id, token_version, expires_delta)

    @staticmethod
    def create_refresh_token(
        user_id: UUID,
        tenant_id: Optional[UUID],
        token_version: int,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a JWT refresh token."""
        if expires_delta is None:
            expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        return AuthService._encode(TokenType.REFRESH, user_id, tenant_id, token_version, expires_delta)

    # --------------------------
    # Token Decoding & Validation
    # --------------------------

    @staticmethod
    def decode_token(token: str, expected_type: Optional[str] = None) -> dict:
        """
        Decode and validate a JWT token.

        Raises:
            TokenExpiredError: If token has expired
            TokenInvalidError: If token is invalid or of the wrong type
        """
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                issuer=settings.ISSUER,
                audience=settings.AUDIENCE,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError(token_type=expected_type or "unknown")
        except JWTError as e:
            logger.warning(
                "Token decode error",
                extra={"error": str(e)}
            )
            raise TokenInvalidError(reason=str(e))

        if expected_type and payload.get("type") != expected_type:
            raise TokenInvalidError(
                reason=f"Expected {expected_type} token, got {payload.get('type')}"
            )

        return payload

    def get_tokens_for_user(self, user: Profile) -> dict:
        """
        Generate access and refresh tokens for a profile.

        Returns:
            Dictionary with access_token, refresh_token, token_type, and expires_in
        """
        return {
            "access_token": self.create_access_token(
                user_id=user.id,
                tenant_id=user.tenant_id,
                token_version=user.token_version,
            ),
            "refresh_token": self.create_refresh_token(
                user_id=user.id,
                tenant_id=user.tenant_id,
                token_version=user.token_version,
            ),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    def _load_from_payload(self, payload: dict) -> Profile:
        user_id = payload.get("sub")
        token_version = payload.get("token_version")

        if not user_id or token_version is None:
            raise TokenInvalidError(reason="Invalid token payload")

        try:
            user_uuid = UUID(user_id)
        except ValueError:
            raise TokenInvalidError(reason="Invalid user ID format")

        user = self.db.query(Profile).filter(Profile.id == user_uuid).first()
        if not user:
            raise TokenInvalidError(reason="User not found")

        if user.token_version != token_version:
            raise TokenVersionMismatchError()

        if user.is_locked:
            raise AccountLockedError()

        if not user.is_active:
            raise AccountDisabledError()

        return user

    # --------------------------
    # Authentication Methods
    # --------------------------

    def authenticate_user(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: str = "unknown",
    ) -> Tuple[Profile, dict]:
        """
        Authenticate a profile with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccountLockedError: If account is locked
            AccountDisabledError: If account is disabled
        """
        ip = ip_address or "unknown"
        user = self.db.query(Profile).filter(Profile.email == email.lower()).first()

        if not user:
            security_logger.log_login_failure(email=email, ip_address=ip, reason="user_not_found")
            raise InvalidCredentialsError()

        if user.is_locked:
            security_logger.log_login_failure(email=email, ip_address=ip, reason="account_locked")
            raise AccountLockedError()

        if not user.is_active:
            security_logger.log_login_failure(email=email, ip_address=ip, reason="account_disabled")
            raise AccountDisabledError()

        if not self.verify_password(password, user.hashed_password):
            user.failed_attempts += 1

            if user.failed_attempts >= settings.MAX_LOGIN_ATTEMPTS:
                user.is_locked = True
                self.db.commit()
                security_logger.log_account_locked(
                    user_id=str(user.id),
                    tenant_id=_tenant_claim(user.tenant_id),
                    ip_address=ip,
                )
            else:
                self.db.commit()

            security_logger.log_login_failure(email=email, ip_address=ip, reason="invalid_password")
            raise InvalidCredentialsError()

        user.failed_attempts = 0
        self.db.commit()

        tokens = self.get_tokens_for_user(user)

        security_logger.log_login_success(
            user_id=str(user.id),
            tenant_id=_tenant_claim(user.tenant_id),
            ip_address=ip,
            user_agent=user_agent,
        )

        return user, tokens

    def refresh_tokens(self, refresh_token: str) -> dict:
        """
        Issue a new token pair from a valid refresh token.

        Raises:
            TokenInvalidError, TokenVersionMismatchError,
            AccountLockedError, AccountDisabledError
        """
        payload = self.decode_token(refresh_token, expected_type=TokenType.REFRESH)
        try:
            user = self._load_from_payload(payload)
        except TokenVersionMismatchError:
            security_logger.log_token_invalid(reason="token_version_mismatch", ip_address="unknown")
            raise

        tokens = self.get_tokens_for_user(user)
        security_logger.log_token_refresh(user_id=str(user.id), tenant_id=_tenant_claim(user.tenant_id))
        return tokens

    def logout(self, user: Profile) -> None:
        """Invalidate every outstanding token of the profile."""
        user.invalidate_tokens()
        self.db.commit()
        security_logger.log_logout(user_id=str(user.id), tenant_id=_tenant_claim(user.tenant_id))

    def change_password(self, user: Profile, current_password: str, new_password: str) -> dict:
        """
        Change the password and rotate the token version.

        Returns a fresh token pair so the caller stays logged in.
        """
        if not self.verify_password(current_password, user.hashed_password):
            raise InvalidCredentialsError()
        if current_password == new_password:
            raise ValidationError("New password must differ from the current password")

        user.hashed_password = self.hash_password(new_password)
        user.invalidate_tokens()
        self.db.commit()

        logger.info("Password changed", extra={"user_id": str(user.id)})
        return self.get_tokens_for_user(user)

    def validate_access_token(self, token: str) -> Profile:
        """
        Validate an access token and return the profile.

        Raises:
            TokenInvalidError, TokenVersionMismatchError,
            AccountLockedError, AccountDisabledError
        """
        payload = self.decode_token(token, expected_type=TokenType.ACCESS)
        return self._load_from_payload(payload)
