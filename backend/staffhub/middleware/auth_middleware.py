"""
Request Middleware Module
=========================

Starlette middleware applied to every request.

Features:
- Request ID generation for tracing (X-Request-ID)
- Request timing (X-Process-Time) and access log
- Best-effort user/property context from the bearer token
- Security headers
- Login rate limiting per client IP

Note:
    Token inspection here only feeds the log context.
    Authentication is enforced by the dependency layer.
"""

import time
import uuid
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from staffhub.core.config import settings
from staffhub.core.logging import (
    get_logger,
    request_id_context,
    security_logger,
    tenant_id_context,
    user_id_context,
)

# Initialize logger
logger = get_logger(__name__)

QUIET_PATHS = {"/", "/health", "/ready"}
DOCS_PATHS = {"/docs", "/redoc", "/openapi.json"}
LOGIN_PATH = "/auth/login"
RATE_LIMIT_WINDOW_SECONDS = 60


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an ID, binds token claims to the log context
    and writes one access log line per request.

    Job endpoints carry the service key rather than a JWT, so their
    bearer value never decodes and the context stays empty.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_context.set(request_id)
        user_id_context.set(None)
        tenant_id_context.set(None)

        request.state.request_id = request_id
        request.state.user_id = None
        request.state.tenant_id = None

        claims = self._peek_claims(request)
        if claims:
            request.state.user_id = claims.get("sub")
            request.state.tenant_id = claims.get("tenant_id")
            user_id_context.set(request.state.user_id)
            tenant_id_context.set(request.state.tenant_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request processing error",
                extra={
                    "error": str(e),
                    "path": request.url.path,
                    "method": request.method,
                }
            )
            raise

        process_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        self._log_request(request, response, process_time)
        return response

    @staticmethod
    def _peek_claims(request: Request) -> Optional[dict]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer ") or request.url.path.startswith("/jobs/"):
            return None
        try:
            return jwt.decode(
                header.split(" ", 1)[1],
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"verify_aud": False, "verify_iss": False},
            )
        except JWTError:
            return None

    @staticmethod
    def _log_request(request: Request, response: Response, process_time: float) -> None:
        if request.url.path in QUIET_PATHS:
            return

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(process_time * 1000, 2),
            "user_id": getattr(request.state, "user_id", None),
            "tenant_id": getattr(request.state, "tenant_id", None),
            "ip_address": request.client.host if request.client else None,
        }

        if response.status_code >= 500:
            logger.error("Request completed with error", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("Request completed with client error", extra=log_data)
        else:
            logger.info("Request completed", extra=log_data)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses.

    The API only serves JSON, so the CSP is strict everywhere except the
    interactive docs in debug mode.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if settings.DEBUG and request.url.path in DOCS_PATHS:
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https://cdn.jsdelivr.net https://fastapi.tiangolo.com; "
                "frame-ancestors 'none';"
            )
        else:
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding-window limit on POST /auth/login per client IP.

    State lives in the worker process; each worker counts separately.
    """

    def __init__(self, app: ASGIApp, max_requests: Optional[int] = None):
        super().__init__(app)
        self.max_requests = max_requests or settings.LOGIN_RATE_LIMIT
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.RATE_LIMIT_ENABLED:
            return await call_next(request)

        if request.url.path == LOGIN_PATH and request.method == "POST":
            client_ip = request.client.host if request.client else "unknown"
            if self.is_rate_limited(client_ip):
                security_logger.log_rate_limit_exceeded(ip_address=client_ip, endpoint=request.url.path)
                return JSONResponse(
                    status_code=429,
                    content={
                        "message": "Too many login attempts. Please try again later.",
                        "code": "RATE_LIMITED",
                        "details": {"retry_after_seconds": RATE_LIMIT_WINDOW_SECONDS},
                    },
                    headers={"Retry-After": str(RATE_LIMIT_WINDOW_SECONDS)},
                )

        return await call_next(request)

    def is_rate_limited(self, key: str, now: Optional[float] = None) -> bool:
        """Record a hit for key and report whether it exceeds the window limit."""
        now = time.monotonic() if now is None else now
        hits = self._hits[key]
        while hits and hits[0] <= now - RATE_LIMIT_WINDOW_SECONDS:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return True
        hits.append(now)
        return False
