"""
Service layer base classes.

- ServiceResult: wrapper for expected outcomes (success or a known failure)
- BaseService: per-class logger

Services raise exceptions for failures the caller cannot handle (database
errors, misconfiguration) and return ServiceResult for outcomes the caller is
expected to branch on (unknown payout id, record already terminal).

Usage:
    class PayoutQueryService(BaseService):
        @classmethod
        def get_status(cls, external_payout_id: str) -> ServiceResult[PayoutRecord]:
            record = PayoutRecord.objects.filter(
                external_payout_id=external_payout_id
            ).first()
            if record is None:
                return ServiceResult.failure("Payout not found", "PAYOUT_NOT_FOUND")
            return ServiceResult.success(record)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure("Payout not found", "PAYOUT_NOT_FOUND")
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict for views and task results."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless: use @classmethod / @staticmethod, or keep only
    injected collaborators on the instance.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Logger named after the service class, e.g.
        ``payouts.services.distribution_service.DistributionService``.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")
