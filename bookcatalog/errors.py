"""
Error taxonomy for the catalog service.

Store and cache failures are logged in full where they happen and then
replaced by generic errors, so SQL text, hostnames or driver messages
never reach an HTTP client. Use :func:`store_error_from` and
:func:`cache_error_from` at the wrapper boundary.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for errors raised by this package."""

    code = "SERVER_ERROR"
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class StoreError(CatalogError):
    message = "Database operation failed"


class CacheError(CatalogError):
    message = "Redis operation failed"


class FetchError(CatalogError):
    code = "FETCH_ERROR"
    message = "Failed to fetch books"


class AuthErrorCode(str, Enum):
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    AUTH_ERROR = "AUTH_ERROR"


# code -> (HTTP status, human message)
_AUTH_ERRORS = {
    AuthErrorCode.AUTH_REQUIRED: (401, "Authentication required"),
    AuthErrorCode.INVALID_TOKEN: (401, "Invalid token"),
    AuthErrorCode.TOKEN_EXPIRED: (401, "Token expired"),
    AuthErrorCode.AUTH_ERROR: (500, "Authentication failed"),
}


class AuthError(CatalogError):
    def __init__(self, code: AuthErrorCode):
        self.code = code.value
        self.status_code, message = _AUTH_ERRORS[code]
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self), "code": self.code}


def store_error_from(exc: BaseException, logger: Optional[logging.Logger] = None) -> StoreError:
    """Log ``exc`` with its full detail and return a detail-free StoreError."""
    (logger or logging.getLogger(__name__)).error(
        "Database query error: %s", exc, exc_info=exc
    )
    return StoreError()


def cache_error_from(exc: BaseException, logger: Optional[logging.Logger] = None) -> CacheError:
    """Log ``exc`` with its full detail and return a detail-free CacheError."""
    (logger or logging.getLogger(__name__)).error(
        "Redis operation error: %s", exc, exc_info=exc
    )
    return CacheError()


def error_body(
    error: str, code: str, detail: Optional[str] = None, *, expose_detail: bool = False
) -> Dict[str, Any]:
    """Build the JSON error payload; ``message`` is only added when exposed."""
    body: Dict[str, Any] = {"error": error, "code": code}
    if expose_detail and detail is not None:
        body["message"] = detail
    return body
