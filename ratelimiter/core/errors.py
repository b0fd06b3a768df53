"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase.
    """

    code: str
    message: str
    hint: str
    policy: str
    window_kind: str
    limit: int
    current_count: int
    header: str
    backend: str
    retry_after: float
    supported: list[str]
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidKeyError(ValidationAppError):
    """Raised when an empty logical key is passed to the limiter."""


class UnknownPolicyKindError(AppError):
    """Raised when a window kind is not one of the supported values."""


class StoreUnavailableError(AppError):
    """Raised when the counter store cannot be reached or times out.

    Transient: callers may retry with backoff. The limiter never retries.
    """


class RateLimitExceededError(AppError):
    """Raised by the HTTP layer when a decision denies the request."""
