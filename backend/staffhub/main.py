"""
Main Application Entry Point
============================

Responsibilities:
- Initialize FastAPI application
- Configure middleware stack
- Register API routers
- Set up exception handlers
- Provide health check endpoints
- Configure CORS

IMPORTANT:
    Database tables are managed via Alembic migrations.
    Do NOT use Base.metadata.create_all() in production.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from staffhub.core.config import settings
from staffhub.core.errors import normalize_error
from staffhub.core.exceptions import ServiceKeyError, StaffHubException
from staffhub.core.logging import configure_logging, get_logger
from staffhub.db.session import SessionLocal, check_database_connection

# Import models so every table is registered on Base.metadata
from staffhub import models  # noqa: F401

from staffhub.routes import (
    admin_routes,
    announcement_routes,
    auth_routes,
    dashboard_routes,
    feed_routes,
    hr_routes,
    job_routes,
    knowledge_routes,
    leave_routes,
    maintenance_routes,
    message_routes,
    notification_routes,
    org_routes,
    request_routes,
    search_routes,
    task_routes,
    training_routes,
)

from staffhub.middleware.auth_middleware import (
    AuthMiddleware,
    SecurityHeadersMiddleware,
    RateLimitMiddleware,
)

logger = get_logger(__name__)


# =====================================
# Application Lifespan Handler
# =====================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging and check the database.
    Shutdown: log completion.
    """
    configure_logging()
    logger.info(
        "Application starting",
        extra={
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }
    )

    if not check_database_connection():
        logger.error("Database connection failed on startup")
    else:
        logger.info("Database connection established")

    try:
        yield
    except asyncio.CancelledError:
        logger.debug("Application shutdown requested (CancelledError caught)")
        raise
    finally:
        logger.info("Application shutdown complete")


# =====================================
# FastAPI App Initialization
# =====================================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    StaffHub - Multi-Property Hotel Staff Management Backend

    ## Features

    * **Multi-Tenant Architecture**: Staff data is scoped to their property
    * **Role-Based Access Control**: Six roles from staff to regional admin
    * **Approval Workflows**: Leave, promotions, transfers and document reviews
    * **Scheduled Jobs**: Escalations, recurring tasks, reminders, email outbox

    ## Authentication

    Use the `/auth/login` endpoint to obtain access and refresh tokens.
    Include the access token in the `Authorization` header as `Bearer <token>`.
    Job endpoints under `/jobs` take the service key instead.

    ## Authorization

    Roles (in order of increasing permissions):
    * `staff`
    * `department_head`
    * `property_hr`
    * `property_manager`
    * `regional_hr`
    * `regional_admin`
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)


# =====================================
# CORS Configuration
# =====================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
    max_age=3600,  # Cache preflight requests for 1 hour
)


# =====================================
# Custom Middleware
# =====================================

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(AuthMiddleware)


# =====================================
# Exception Handlers
# =====================================

@app.exception_handler(ServiceKeyError)
async def service_key_exception_handler(request: Request, exc: ServiceKeyError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": "Unauthorized"},
    )


@app.exception_handler(StaffHubException)
async def staffhub_exception_handler(request: Request, exc: StaffHubException):
    """
    Handle custom StaffHub exceptions.

    Body: {message, code, details}
    """
    logger.warning(
        "StaffHub exception",
        extra={
            "exception_type": type(exc).__name__,
            "message": exc.message,
            "status_code": exc.status_code,
            "path": request.url.path,
        }
    )

    normalized = normalize_error(exc)
    return JSONResponse(
        status_code=normalized.status_code,
        content={
            "message": normalized.message,
            "code": exc.code,
            "details": normalized.details,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors.

    Provides detailed error messages for invalid requests.
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        "Request validation error",
        extra={
            "path": request.url.path,
            "errors": errors,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected exceptions.

    Integrity and network failures map to their category; the raw exception
    text is only returned outside production.
    """
    logger.error(
        "Unhandled exception",
        extra={
            "exception_type": type(exc).__name__,
            "message": str(exc),
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )

    normalized = normalize_error(exc)
    body = normalized.to_body()
    if settings.ENVIRONMENT != "production" and normalized.status_code >= 500:
        body["message"] = str(exc) or normalized.message

    return JSONResponse(status_code=normalized.status_code, content=body)


# =====================================
# Register Routers
# =====================================

app.include_router(auth_routes.router)
app.include_router(admin_routes.router)
app.include_router(request_routes.router)
app.include_router(leave_routes.router)
app.include_router(hr_routes.router)
app.include_router(notification_routes.router)
app.include_router(announcement_routes.router)
app.include_router(message_routes.router)
app.include_router(training_routes.router)
app.include_router(knowledge_routes.router)
app.include_router(task_routes.router)
app.include_router(maintenance_routes.router)
app.include_router(search_routes.router)
app.include_router(feed_routes.router)
app.include_router(org_routes.router)
app.include_router(dashboard_routes.router)
app.include_router(job_routes.router)


# =====================================
# Health Check Endpoints
# =====================================

@app.get(
    "/",
    tags=["Health"],
    summary="Basic Health Check",
    description="Returns basic service status information.",
)
def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get(
    "/health",
    tags=["Health"],
    summary="Detailed Health Check",
    description="Returns detailed health status including database connectivity.",
)
def detailed_health_check():
    db_healthy = check_database_connection()

    return {
        "status": "healthy" if db_healthy else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "checks": {
            "database": "healthy" if db_healthy else "unhealthy",
        },
    }


@app.get(
    "/ready",
    tags=["Health"],
    summary="Readiness Check",
    description="Returns whether the service is ready to accept requests.",
)
def readiness_check():
    """
    Readiness check for container orchestration.

    Returns:
        200 if ready, 503 if not ready
    """
    if not check_database_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )

    return {"status": "ready"}


@app.get(
    "/db-check",
    tags=["Health"],
    summary="Database Connection Check",
    description="Opens a session and executes SELECT 1.",
)
def database_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "Database Connected"}
    except Exception as e:
        logger.error(
            "Database connection check failed",
            extra={"error": str(e)}
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "Database Connection Failed",
                "error": str(e) if settings.DEBUG else "Unable to connect to database",
            },
        )
    finally:
        db.close()


# =====================================
# Application Info
# =====================================

@app.get(
    "/info",
    tags=["Info"],
    summary="Application Information",
    description="Returns application configuration information (non-sensitive).",
)
def application_info():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "features": {
            "multi_tenant": True,
            "rbac": True,
            "jwt_auth": True,
            "rate_limiting": settings.RATE_LIMIT_ENABLED,
            "ai_triage": bool(settings.LLM_API_KEY),
            "email": bool(settings.EMAIL_API_KEY),
        },
        "token_settings": {
            "access_token_expire_minutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            "refresh_token_expire_days": settings.REFRESH_TOKEN_EXPIRE_DAYS,
        },
    }
