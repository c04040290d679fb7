"""
Structured error responses.

Failures reach API clients as an ``ErrorResponse`` carried in the detail of
an HTTPException: a stable code, a human-readable message and optional
context. Per-candidate exploration details (paths tried, upstream errors)
are never part of a user-visible error.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException
from pydantic import BaseModel, Field

ERR_INVALID_REQUEST = "INVALID_REQUEST"
ERR_INVALID_URL = "INVALID_URL"
ERR_NETWORK_ERROR = "NETWORK_ERROR"
ERR_VALIDATION_FAILED = "VALIDATION_FAILED"
ERR_NOT_FOUND = "NOT_FOUND"
ERR_TIMEOUT = "TIMEOUT"
ERR_UNAUTHORIZED = "UNAUTHORIZED"
ERR_RATE_LIMITED = "RATE_LIMITED"
ERR_INTERNAL_ERROR = "INTERNAL_ERROR"
ERR_CACHE_ERROR = "CACHE_ERROR"
ERR_PARSE_ERROR = "PARSE_ERROR"

NO_MATCHING_RESOURCE = "No matching resource found for this request."

_FRIENDLY_MESSAGES = {
    ERR_INVALID_URL: "The provided URL is not valid. Please check the Hugo site URL format.",
    ERR_NETWORK_ERROR: (
        "Unable to connect to the Hugo site. "
        "Please check your internet connection and the site URL."
    ),
    ERR_NOT_FOUND: "The requested content was not found on the Hugo site.",
    ERR_TIMEOUT: "The request timed out. The Hugo site may be slow to respond.",
    ERR_UNAUTHORIZED: "Access denied. The Hugo site may require authentication.",
    ERR_RATE_LIMITED: "Too many requests. Please wait a moment before trying again.",
    ERR_VALIDATION_FAILED: (
        "The response from the Hugo site doesn't contain the expected data structure."
    ),
    ERR_PARSE_ERROR: (
        "Unable to parse the response from the Hugo site. "
        "The data may be in an unexpected format."
    ),
    ERR_CACHE_ERROR: "There was an issue with the cache system.",
    ERR_INTERNAL_ERROR: "An internal error occurred while processing your request.",
}

_STATUS_CODES = {
    ERR_INVALID_REQUEST: 400,
    ERR_INVALID_URL: 400,
    ERR_VALIDATION_FAILED: 400,
    ERR_NOT_FOUND: 404,
    ERR_UNAUTHORIZED: 401,
    ERR_RATE_LIMITED: 429,
    ERR_NETWORK_ERROR: 502,
    ERR_TIMEOUT: 504,
}


def user_friendly_message(code: str) -> str:
    """Map an error code to a message suitable for end users."""
    return _FRIENDLY_MESSAGES.get(code, "An unexpected error occurred.")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ErrorDetail(BaseModel):
    code: str
    message: str
    context: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=_now)


class ErrorResponse(BaseModel):
    success: bool = False
    errors: list[ErrorDetail] = Field(default_factory=list)


def api_error(
    code: str,
    message: str | None = None,
    context: dict[str, Any] | None = None,
) -> HTTPException:
    """
    Build an HTTPException whose detail is a serialized ErrorResponse.

    Args:
        code: One of the ``ERR_*`` codes.
        message: Overrides the default user-friendly message for ``code``.
        context: Extra, user-safe facts about the failure.
    """
    detail = ErrorResponse(
        errors=[
            ErrorDetail(
                code=code,
                message=message or user_friendly_message(code),
                context=context,
            )
        ]
    )
    return HTTPException(status_code=_STATUS_CODES.get(code, 500), detail=detail.model_dump())


def not_found(context: dict[str, Any] | None = None) -> HTTPException:
    """The only way an exhausted resolution is reported to callers."""
    return api_error(ERR_NOT_FOUND, NO_MATCHING_RESOURCE, context)


__all__ = [
    "ERR_CACHE_ERROR",
    "ERR_INTERNAL_ERROR",
    "ERR_INVALID_REQUEST",
    "ERR_INVALID_URL",
    "ERR_NETWORK_ERROR",
    "ERR_NOT_FOUND",
    "ERR_PARSE_ERROR",
    "ERR_RATE_LIMITED",
    "ERR_TIMEOUT",
    "ERR_UNAUTHORIZED",
    "ERR_VALIDATION_FAILED",
    "ErrorDetail",
    "ErrorResponse",
    "NO_MATCHING_RESOURCE",
    "api_error",
    "not_found",
    "user_friendly_message",
]
