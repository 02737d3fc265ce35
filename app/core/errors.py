"""Application-level exception types.

Every business failure raised by the stores and services is an ``AppError``
subclass. Each subclass carries the HTTP status it maps to, so the exception
handlers can translate errors without knowing about individual operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    missing_fields: list[str]
    max_bytes: int
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    status_code: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when required input is missing or malformed."""


class DuplicateEmailError(AppError):
    """Raised when registering an email that already has an account."""

    status_code: ClassVar[int] = 409


class InvalidCredentialsError(AppError):
    """Raised for an unknown email or a wrong password (indistinguishable)."""


class AccountNotFoundError(AppError):
    """Raised when an account id does not match any row."""

    status_code: ClassVar[int] = 404


class MissingFileError(AppError):
    """Raised when an upload carries no file bytes."""


class AssetNotFoundError(AppError):
    """Raised when an account exists but has no profile picture yet."""

    status_code: ClassVar[int] = 404


class PayloadTooLargeError(AppError):
    """Raised when an uploaded file exceeds the configured size limit."""

    status_code: ClassVar[int] = 413


@dataclass
class RateLimitedError(AppError):
    """Raised when a client exceeds its request budget for the window."""

    status_code: ClassVar[int] = 429

    headers: dict[str, str] = field(default_factory=dict)


class InternalAppError(AppError):
    """Raised for server-side failures that must not leak detail to clients."""

    status_code: ClassVar[int] = 500


class DatabaseClosedError(InternalAppError):
    """Raised when the connection pool is used after shutdown began."""
