"""
Error Normalization Module
==========================

Maps any exception raised while serving a request onto a small set of
user-facing categories. The frontend shows the category message as a toast;
the raw exception text never leaves the server in production.

Categories:
- NOT_FOUND, ACCESS_DENIED, DUPLICATE_ENTRY, FOREIGN_KEY,
  VALIDATION_ERROR, NETWORK_ERROR, GENERIC_ERROR, UNKNOWN_ERROR
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

import httpx
from fastapi import status
from sqlalchemy.exc import IntegrityError, NoResultFound, DataError

from staffhub.core.exceptions import StaffHubException


class ErrorCategory(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    FOREIGN_KEY = "FOREIGN_KEY"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    GENERIC_ERROR = "GENERIC_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


CATEGORY_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.NOT_FOUND: "Resource not found",
    ErrorCategory.ACCESS_DENIED: "You do not have permission to perform this action",
    ErrorCategory.DUPLICATE_ENTRY: "Resource already exists",
    ErrorCategory.FOREIGN_KEY: "Referenced resource does not exist",
    ErrorCategory.VALIDATION_ERROR: "Invalid data provided",
    ErrorCategory.NETWORK_ERROR: "Network error. Please check your connection and try again",
    ErrorCategory.GENERIC_ERROR: "Something went wrong",
    ErrorCategory.UNKNOWN_ERROR: "An unexpected error occurred",
}

CATEGORY_STATUS: Dict[ErrorCategory, int] = {
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCategory.DUPLICATE_ENTRY: status.HTTP_409_CONFLICT,
    ErrorCategory.FOREIGN_KEY: status.HTTP_409_CONFLICT,
    ErrorCategory.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCategory.NETWORK_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.GENERIC_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCategory.UNKNOWN_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# PostgreSQL SQLSTATE codes for integrity violations
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_CHECK_VIOLATION = "23514"
PG_NOT_NULL_VIOLATION = "23502"


@dataclass
class NormalizedError:
    category: ErrorCategory
    message: str
    status_code: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_body(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.category.value,
            "details": self.details,
        }


def _categorize_integrity_error(exc: IntegrityError) -> ErrorCategory:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == PG_UNIQUE_VIOLATION:
        return ErrorCategory.DUPLICATE_ENTRY
    if pgcode == PG_FOREIGN_KEY_VIOLATION:
        return ErrorCategory.FOREIGN_KEY
    if pgcode in (PG_CHECK_VIOLATION, PG_NOT_NULL_VIOLATION):
        return ErrorCategory.VALIDATION_ERROR

    # SQLite reports violations only through the message text
    text = str(exc.orig).lower()
    if "unique constraint" in text or "duplicate" in text:
        return ErrorCategory.DUPLICATE_ENTRY
    if "foreign key constraint" in text:
        return ErrorCategory.FOREIGN_KEY
    if "check constraint" in text or "not null constraint" in text:
        return ErrorCategory.VALIDATION_ERROR
    return ErrorCategory.GENERIC_ERROR


def categorize(exc: BaseException) -> ErrorCategory:
    """Pick the user-facing category for an exception."""
    if isinstance(exc, StaffHubException):
        try:
            return ErrorCategory(exc.code)
        except ValueError:
            return ErrorCategory.GENERIC_ERROR
    if isinstance(exc, IntegrityError):
        return _categorize_integrity_error(exc)
    if isinstance(exc, NoResultFound):
        return ErrorCategory.NOT_FOUND
    if isinstance(exc, DataError):
        return ErrorCategory.VALIDATION_ERROR
    if isinstance(exc, (httpx.TransportError, httpx.HTTPStatusError)):
        return ErrorCategory.NETWORK_ERROR
    if isinstance(exc, PermissionError):
        return ErrorCategory.ACCESS_DENIED
    return ErrorCategory.UNKNOWN_ERROR


def normalize_error(exc: BaseException) -> NormalizedError:
    """
    Normalize an exception into a category, message and HTTP status.

    StaffHubException keeps its own message and status code; everything else
    gets the fixed category message.
    """
    category = categorize(exc)

    if isinstance(exc, StaffHubException):
        return NormalizedError(
            category=category,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    return NormalizedError(
        category=category,
        message=CATEGORY_MESSAGES[category],
        status_code=CATEGORY_STATUS[category],
        details={"type": type(exc).__name__},
    )
