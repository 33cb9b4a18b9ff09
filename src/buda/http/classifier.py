"""Maps a completed HTTP response to a success body or a typed error.

The status table is total: 200/201 succeed (after body validation), the
listed 4xx/5xx codes map to their own error class, and every other status
becomes a generic ApiError.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from buda.constants import HttpStatus
from buda.exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    InvalidResponseError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnprocessableEntityError,
)

MESSAGE_FIELDS = ("message", "error", "error_message", "detail", "details")

# A 2xx body whose "message" mentions an error is treated as a failure
_ERROR_MESSAGE = re.compile("error", re.IGNORECASE)

_STATUS_ERRORS: dict[int, tuple[type[ApiError], str]] = {
    HttpStatus.BAD_REQUEST: (BadRequestError, "Bad request"),
    HttpStatus.UNAUTHORIZED: (AuthenticationError, "Authentication failed"),
    HttpStatus.FORBIDDEN: (AuthorizationError, "Forbidden - insufficient permissions"),
    HttpStatus.NOT_FOUND: (NotFoundError, "Resource not found"),
    HttpStatus.UNPROCESSABLE_ENTITY: (UnprocessableEntityError, "Validation failed"),
    HttpStatus.RATE_LIMITED: (RateLimitError, "Rate limit exceeded"),
}
_SERVER_ERROR = (ServerError, "Server error")
_UNKNOWN_ERROR = (ApiError, "Unknown error")


@dataclass(frozen=True)
class Success:
    """A validated 2xx JSON object body."""

    body: dict[str, Any]
    status_code: int

    def unwrap(self) -> dict[str, Any]:
        return self.body


@dataclass(frozen=True)
class Failure:
    """A classified error, not yet raised."""

    error: ApiError
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)

    def unwrap(self) -> dict[str, Any]:
        raise self.error


Outcome = Success | Failure


def error_class_for(status_code: int) -> tuple[type[ApiError], str]:
    """Return (error class, default message) for a non-success status."""
    if status_code in _STATUS_ERRORS:
        return _STATUS_ERRORS[status_code]
    if HttpStatus.INTERNAL_SERVER_ERROR <= status_code <= HttpStatus.GATEWAY_TIMEOUT:
        return _SERVER_ERROR
    return _UNKNOWN_ERROR


def extract_error_message(body: Any) -> str | None:
    """Pull a human-readable message out of an error body, if there is one."""
    if not isinstance(body, Mapping):
        return None

    for name in MESSAGE_FIELDS:
        value = body.get(name)
        if isinstance(value, str) and value:
            return value

    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, str):
            return first
        if isinstance(first, Mapping):
            message = first.get("message")
            return message if isinstance(message, str) else None

    return None


def classify(
    status_code: int, body: Any, headers: Mapping[str, str] | None = None
) -> Outcome:
    """Classify a response.

    Args:
        status_code: HTTP status.
        body: Parsed JSON when the response was JSON, otherwise the raw text.
        headers: Response headers, attached to any error for inspection.
    """
    headers = dict(headers or {})

    if status_code in (HttpStatus.OK, HttpStatus.CREATED):
        return _classify_success(status_code, body, headers)

    error_cls, default_message = error_class_for(status_code)
    message = extract_error_message(body) or default_message
    error = error_cls(
        message,
        status_code=status_code,
        response_body=body,
        response_headers=headers,
    )
    return Failure(error=error, status_code=status_code, headers=headers)


def _classify_success(status_code: int, body: Any, headers: dict[str, str]) -> Outcome:
    if body is None or body == "" or body == {}:
        error: ApiError = InvalidResponseError(
            "Empty response body", status_code=status_code, response_headers=headers
        )
        return Failure(error=error, status_code=status_code, headers=headers)

    if not isinstance(body, dict):
        error = InvalidResponseError(
            "Invalid response format",
            status_code=status_code,
            response_body=body,
            response_headers=headers,
        )
        return Failure(error=error, status_code=status_code, headers=headers)

    message = body.get("message")
    if isinstance(message, str) and _ERROR_MESSAGE.search(message):
        error = ApiError(
            message,
            status_code=status_code,
            response_body=body,
            response_headers=headers,
        )
        return Failure(error=error, status_code=status_code, headers=headers)

    return Success(body=body, status_code=status_code)
