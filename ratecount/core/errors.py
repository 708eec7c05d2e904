"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    segment: str
    tier: str
    bucket: str
    content_type: str
    backend_error: str


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


class UnsupportedMediaTypeAppError(AppError):
    """Raised when a request carries a Content-Type we do not accept."""


class UnknownSegmentError(ValidationAppError):
    """Raised when a count is requested for a segment other than second/hour."""


class CounterNotFoundError(AppError):
    """Raised by a counter tier that holds no data for the key or bucket.

    Tiers raise this instead of returning ``0`` so the service can tell
    "never observed" apart from "observed zero times" and fall back.
    """


class StorageAppError(AppError):
    """Raised when the durable store cannot be reached or returns bad data."""


def counter_not_found(tier: str) -> CounterNotFoundError:
    """Build the not-found error raised by counter tiers."""

    return CounterNotFoundError(
        code="counter_not_found",
        message="counter not found",
        details={"tier": tier},
    )
