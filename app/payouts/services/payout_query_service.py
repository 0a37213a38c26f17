"""Read-only payout lookups for the API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService, ServiceResult
from payouts.models import PayoutRecord

if TYPE_CHECKING:
    from typing import Any

RECENT_PAYOUTS_LIMIT = 50


class PayoutQueryService(BaseService):
    @classmethod
    def get_payout_status(
        cls,
        external_payout_id: str,
        recipient_type: str | None = None,
        recipient_id: Any = None,
    ) -> ServiceResult[PayoutRecord]:
        """
        Find a payout by gateway id, optionally scoped to one recipient.

        A payout belonging to someone else is reported as not found.
        """
        queryset = PayoutRecord.objects.filter(external_payout_id=external_payout_id)
        if recipient_type is not None:
            queryset = queryset.filter(
                recipient_type=recipient_type, recipient_id=recipient_id
            )

        record = queryset.first()
        if record is None:
            return ServiceResult.failure("Payout not found", error_code="PAYOUT_NOT_FOUND")
        return ServiceResult.success(record)

    @staticmethod
    def get_recipient_payouts(
        recipient_type: str, recipient_id: Any, limit: int = RECENT_PAYOUTS_LIMIT
    ) -> list[PayoutRecord]:
        """Most recent payouts first."""
        return list(
            PayoutRecord.objects.filter(
                recipient_type=recipient_type, recipient_id=recipient_id
            ).order_by("-created_at")[:limit]
        )
