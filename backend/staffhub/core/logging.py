"""
StaffHub - Logging Infrastructure

This module provides structured logging with support for:
- JSON formatted logs for production
- Text formatted logs for development
- Context binding for request tracing
- Dedicated security and audit event loggers
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, ParamSpec

import structlog
from structlog.types import Processor

from staffhub.core.config import get_settings

# Context variables for request tracing
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
tenant_id_context: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)
user_id_context: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

P = ParamSpec("P")
R = TypeVar("R")


def add_context_variables(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add request_id, tenant_id (property) and user_id from context
    variables to every log entry.
    """
    request_id = request_id_context.get()
    if request_id:
        event_dict["request_id"] = request_id

    tenant_id = tenant_id_context.get()
    if tenant_id:
        event_dict["tenant_id"] = tenant_id

    user_id = user_id_context.get()
    if user_id:
        event_dict["user_id"] = user_id

    return event_dict


def get_log_level(settings: Any) -> int:
    """Convert string log level to logging constant."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(settings.log_level.upper(), logging.INFO)


def get_processors(settings: Any) -> list[Processor]:
    """Get structlog processors based on settings."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_variables,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return processors


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    This should be called once at application startup.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=get_log_level(settings),
    )

    structlog.configure(
        processors=get_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("leave_request_created", leave_id="123", requester_id="456")
    """
    return structlog.get_logger(name)


def log_execution_time(
    log: structlog.stdlib.BoundLogger,
    operation: str,
    **extra_fields: Any
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to log execution time of a function.

    Example:
        >>> @log_execution_time(log, "approval_escalation")
        ... def run_approval_escalation(db: Session) -> dict:
        ...     ...
    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                duration_ms = (time.perf_counter() - start_time) * 1000
                log.info(
                    f"{operation}_completed",
                    duration_ms=round(duration_ms, 2),
                    success=True,
                    **extra_fields
                )
                return result
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                log.error(
                    f"{operation}_failed",
                    duration_ms=round(duration_ms, 2),
                    success=False,
                    error=str(e),
                    error_type=type(e).__name__,
                    **extra_fields
                )
                raise
        return wrapper
    return decorator


class SecurityLogger:
    """
    Specialized logger for authentication and authorization events.
    """

    def __init__(self) -> None:
        self.log = get_logger("security")

    def log_login_success(self, user_id: str, tenant_id: Optional[str], ip_address: str, user_agent: str = "unknown") -> None:
        self.log.info(
            "login_success",
            user_id=user_id,
            tenant_id=tenant_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def log_login_failure(self, email: str, ip_address: str, reason: str) -> None:
        self.log.warning("login_failure", email=email, ip_address=ip_address, reason=reason)

    def log_account_locked(self, user_id: str, tenant_id: Optional[str], ip_address: str) -> None:
        self.log.warning("account_locked", user_id=user_id, tenant_id=tenant_id, ip_address=ip_address)

    def log_token_invalid(self, reason: str, ip_address: str) -> None:
        self.log.warning("token_invalid", reason=reason, ip_address=ip_address)

    def log_token_refresh(self, user_id: str, tenant_id: Optional[str]) -> None:
        self.log.info("token_refresh", user_id=user_id, tenant_id=tenant_id)

    def log_logout(self, user_id: str, tenant_id: Optional[str]) -> None:
        self.log.info("logout", user_id=user_id, tenant_id=tenant_id)

    def log_unauthorized_access(self, user_id: str, resource: str, action: str) -> None:
        self.log.warning("unauthorized_access", user_id=user_id, resource=resource, action=action)

    def log_tenant_isolation_violation(
        self,
        user_id: str,
        user_tenant: Optional[str],
        target_tenant: Optional[str],
        resource: str,
    ) -> None:
        self.log.error(
            "tenant_isolation_violation",
            user_id=user_id,
            user_tenant=user_tenant,
            target_tenant=target_tenant,
            resource=resource,
        )

    def log_rate_limit_exceeded(self, ip_address: str, endpoint: str) -> None:
        self.log.warning("rate_limit_exceeded", ip_address=ip_address, endpoint=endpoint)

    def log_service_key_rejected(self, endpoint: str, ip_address: str) -> None:
        self.log.warning("service_key_rejected", endpoint=endpoint, ip_address=ip_address)


class AuditLogger:
    """
    Logger for state-changing business actions.

    Every entry carries the acting profile and the affected entity so the
    log stream can be replayed as an audit trail.
    """

    def __init__(self) -> None:
        self.log = get_logger("audit")

    def log_user_created(self, actor_id: str, target_user_id: str, role: str) -> None:
        self.log.info("user_created", actor_id=actor_id, target_user_id=target_user_id, role=role)

    def log_user_modified(self, actor_id: str, target_user_id: str, changes: Dict[str, Any]) -> None:
        self.log.info("user_modified", actor_id=actor_id, target_user_id=target_user_id, changes=changes)

    def log_entity_changed(
        self,
        actor_id: str,
        entity_type: str,
        entity_id: str,
        action: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.log.info(
            "entity_changed",
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            changes=changes or {},
        )

    def log_request_action(
        self,
        actor_id: str,
        request_id: str,
        action: str,
        old_status: Optional[str],
        new_status: Optional[str],
    ) -> None:
        self.log.info(
            "request_action",
            actor_id=actor_id,
            request_id=request_id,
            action=action,
            old_status=old_status,
            new_status=new_status,
        )

    def log_hr_change_applied(self, entity_type: str, entity_id: str, employee_id: str) -> None:
        self.log.info("hr_change_applied", entity_type=entity_type, entity_id=entity_id, employee_id=employee_id)

    def log_job_run(self, job: str, result: Dict[str, Any]) -> None:
        self.log.info("job_run", job=job, result=result)


security_logger = SecurityLogger()
audit_logger = AuditLogger()
