"""Error taxonomy and classification for calendar sessions."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors that can occur while serving a calendar session."""

    STORE_UNAVAILABLE = "store_unavailable"
    AUTHENTICATION_FAILED = "authentication_failed"
    WRITE_FAILED = "write_failed"
    INVALID_MEMBER = "invalid_member"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CalendarError(Exception):
    """Base class for famcal errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN


class StoreUnavailableError(CalendarError):
    """The document store could not be initialized or reached.

    Fatal to the viewing session; there is no retry loop.
    """

    category = ErrorCategory.STORE_UNAVAILABLE


class AuthFailureError(CalendarError):
    """Anonymous identity acquisition failed. Fatal to the viewing session."""

    category = ErrorCategory.AUTHENTICATION_FAILED


class WriteFailureError(CalendarError):
    """The store rejected an add/delete/toggle/send."""

    category = ErrorCategory.WRITE_FAILED

    def __init__(self, message: str, *, collection: str) -> None:
        super().__init__(message)
        self.collection = collection


class InvalidMemberError(CalendarError, ValueError):
    """A name outside the configured family members was used."""

    category = ErrorCategory.INVALID_MEMBER


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    category: ErrorCategory
    message: str
    suggestion: str
    severity: ErrorSeverity


_ERROR_PATTERNS: dict[Literal["store", "auth", "network"], dict[str, list[str] | set[str]]] = {
    "store": {
        "phrases": ["unable to open database", "database is locked", "disk i/o error", "no such table"],
        "exception_types": {"OperationalError", "DatabaseError"},
    },
    "auth": {
        "phrases": ["bad signature", "signature expired", "credential not configured", "unauthorized"],
        "exception_types": {"BadSignature", "SignatureExpired", "PermissionError"},
    },
    "network": {
        "phrases": ["connection", "timeout", "unreachable", "502", "503", "504"],
        "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout"},
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["store", "auth", "network"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_error(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with a recovery suggestion.

    Typed famcal errors map straight to their category; anything else is
    classified by exception type name and message.
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    category = exception.category if isinstance(exception, CalendarError) else None

    if category is ErrorCategory.STORE_UNAVAILABLE or (
        category is None and _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="store")
    ):
        return ErrorResponse(
            category=ErrorCategory.STORE_UNAVAILABLE,
            message="The calendar could not be loaded.",
            suggestion="Reload the page to try again.",
            severity=ErrorSeverity.CRITICAL,
        )

    if category is ErrorCategory.AUTHENTICATION_FAILED or (
        category is None and _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth")
    ):
        return ErrorResponse(
            category=ErrorCategory.AUTHENTICATION_FAILED,
            message="Sign-in failed.",
            suggestion="Reload the page to sign in again.",
            severity=ErrorSeverity.CRITICAL,
        )

    if category is ErrorCategory.INVALID_MEMBER:
        return ErrorResponse(
            category=ErrorCategory.INVALID_MEMBER,
            message="That family member is not part of this calendar.",
            suggestion="Pick one of the listed family members.",
            severity=ErrorSeverity.LOW,
        )

    if category is ErrorCategory.WRITE_FAILED:
        return ErrorResponse(
            category=ErrorCategory.WRITE_FAILED,
            message="The change could not be saved.",
            suggestion="Try again in a moment.",
            severity=ErrorSeverity.MEDIUM,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return ErrorResponse(
            category=ErrorCategory.NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        category=ErrorCategory.UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later.",
        severity=ErrorSeverity.MEDIUM,
    )
