"""
Base exception classes for application-wide error handling.

Every domain error raised by the recipients and payouts apps derives from
BaseApplicationError, so callers (views, Celery tasks) can turn any of them
into a machine-readable payload with ``to_dict()``.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Bad input (amounts, bank details)
    ├── NotFoundError - Missing recipient or payout record
    ├── ConflictError - Lock contention, illegal state changes
    └── ExternalServiceError - Payout gateway failures

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "Amount must be a non-negative integer",
        error_code="INVALID_AMOUNT",
        details={"amount": -5},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dictionary for API responses and task results.

        Example:
            {
                "error": "Restaurant not found",
                "error_code": "RECIPIENT_NOT_FOUND",
                "details": {"recipient_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Terminal for the operation that raised it; retrying with the same input
    gives the same result.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource does not exist."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Use for:
    - Another worker holding the lock for the same order
    - State machine transitions that are not allowed from the current state
    """

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a third-party service fails.

    Subclasses decide whether the failure is worth retrying.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
