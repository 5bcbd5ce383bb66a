"""
Data access errors: validation failures raised before any network call, and
backend failures classified by cause so endpoints can render a specific message.
"""

from enum import Enum
from typing import Any

import httpx
from postgrest.exceptions import APIError


class BackendErrorCause(str, Enum):
    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not-found"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


# User-facing message per cause
CAUSE_MESSAGES: dict[BackendErrorCause, str] = {
    BackendErrorCause.PERMISSION_DENIED: "Permission denied. Please check if you are logged in and have the necessary permissions.",
    BackendErrorCause.UNAVAILABLE: "The database service is currently unavailable. Please check your connection and try again.",
    BackendErrorCause.NOT_FOUND: "The requested document was not found. It may have been deleted.",
    BackendErrorCause.CANCELLED: "The operation was cancelled. Please try again.",
    BackendErrorCause.UNKNOWN: "The database rejected the request. Please try again.",
}

# PostgREST / Postgres error codes by cause
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302", "401", "403"}
_NOT_FOUND_CODES = {"PGRST116", "PGRST205", "42P01", "404"}
_UNAVAILABLE_CODES = {"PGRST000", "PGRST001", "PGRST002", "502", "503", "504"}
_CANCELLED_CODES = {"57014"}


class DataAccessError(Exception):
    """Base for errors raised by the data access layer."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.message = message
        self.operation = operation
        super().__init__(message)


class ValidationError(DataAccessError):
    """A required field is missing or empty. Raised before any store call."""


class BackendError(DataAccessError):
    """The store rejected or failed the call."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        cause: BackendErrorCause = BackendErrorCause.UNKNOWN,
        detail: Any = None,
    ) -> None:
        super().__init__(message, operation)
        self.cause = cause
        self.detail = detail

    @property
    def user_message(self) -> str:
        return CAUSE_MESSAGES[self.cause]


def classify_backend_error(exc: BaseException) -> BackendErrorCause:
    """Map a supabase/PostgREST or transport exception onto a BackendErrorCause."""
    if isinstance(exc, APIError):
        code = str(exc.code or "").strip().upper()
        message = (exc.message or "").lower()
        if code in _PERMISSION_CODES or "permission denied" in message:
            return BackendErrorCause.PERMISSION_DENIED
        if code in _CANCELLED_CODES or "canceling statement" in message:
            return BackendErrorCause.CANCELLED
        if code in _NOT_FOUND_CODES:
            return BackendErrorCause.NOT_FOUND
        if code in _UNAVAILABLE_CODES:
            return BackendErrorCause.UNAVAILABLE
        return BackendErrorCause.UNKNOWN
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return BackendErrorCause.UNAVAILABLE
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code in (401, 403):
            return BackendErrorCause.PERMISSION_DENIED
        if status_code == 404:
            return BackendErrorCause.NOT_FOUND
        if status_code in (502, 503, 504):
            return BackendErrorCause.UNAVAILABLE
    return BackendErrorCause.UNKNOWN


def backend_error(operation: str, exc: BaseException) -> BackendError:
    """Wrap a store failure with the operation name, e.g. 'Error adding contact: ...'."""
    cause = classify_backend_error(exc)
    if cause is BackendErrorCause.PERMISSION_DENIED:
        message = f"Permission denied while {operation}"
    else:
        detail_msg = exc.message if isinstance(exc, APIError) and exc.message else str(exc)
        message = f"Error {operation}: {detail_msg}"
    return BackendError(message, operation=operation, cause=cause, detail=str(exc))
