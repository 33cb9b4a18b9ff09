"""Exceptions raised by the Buda SDK.

Every error kind is its own class so callers can branch with ``except``
instead of matching message text. All classes live here to avoid circular
imports between the transport, classifier and client modules.
"""

from collections.abc import Mapping
from typing import Any


class BudaError(Exception):
    """Base exception for all SDK errors."""


class ConfigurationError(BudaError):
    """Raised when credentials or settings are missing or invalid. Never retried."""


class ValidationError(BudaError):
    """Raised when a caller-supplied parameter is rejected before any request is sent."""


class ApiError(BudaError):
    """Raised for failed API calls. Carries the HTTP context when one exists."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: Any = None,
        response_headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.response_headers = dict(response_headers) if response_headers else {}

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class BadRequestError(ApiError):
    """HTTP 400."""


class AuthenticationError(ApiError):
    """HTTP 401: bad key, bad signature or stale nonce."""


class AuthorizationError(ApiError):
    """HTTP 403: the key lacks permission for the endpoint."""


class NotFoundError(ApiError):
    """HTTP 404."""


class UnprocessableEntityError(ApiError, ValidationError):
    """HTTP 422: the server rejected the parameters."""


class RateLimitError(ApiError):
    """HTTP 429 after retries are exhausted."""


class ServerError(ApiError):
    """HTTP 500-504 after retries are exhausted."""


class ApiConnectionError(ApiError):
    """Raised when the host cannot be reached (refused, DNS, reset)."""


class ApiTimeoutError(ApiError):
    """Raised when a request exceeds the configured timeout."""


class InvalidResponseError(ApiError):
    """Raised when a success-status response has an empty or non-object body."""
