"""
Payout reconciliation: apply gateway outcomes to PayoutRecords.

Two sources feed the same code path:
    1. Webhooks (payout.processed, payout.failed) via payouts.webhooks.handlers
    2. The periodic stale-payout sweep, which polls the gateway for records
       stuck in queued/processing

Rules:
    - Unknown payout ids are logged and ignored (success, nothing mutated)
    - Terminal records are never overwritten; replays and out-of-order events
      are no-ops
    - A failed or cancelled payout that was credited when the gateway accepted
      it has that credit moved from balance to pending_amount, exactly once

Usage:
    from payouts.services import PayoutReconciler

    result = PayoutReconciler.apply_gateway_status(
        "pout_00000000000001", "failed", failure_reason="Beneficiary bank offline"
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.services import BaseService, ServiceResult
from payouts.adapters import RazorpayXAdapter, map_gateway_status
from payouts.exceptions import PayoutGatewayError
from payouts.models import PayoutRecord
from payouts.state_machines import PayoutStatus
from recipients.services import RecipientLedger

if TYPE_CHECKING:
    from typing import Any


# Reconciliation outcomes
ACTION_UPDATED = "updated"
ACTION_DUPLICATE = "duplicate"
ACTION_IGNORED = "ignored"

STALE_BATCH_SIZE = 100


@dataclass
class ReconcileOutcome:
    """
    What a gateway status update did to a PayoutRecord.

    Attributes:
        action: updated, duplicate (replay of the current terminal state) or
            ignored (unknown payout, or terminal record)
        compensated: Credit moved to pending_amount by this update
    """

    action: str
    external_payout_id: str | None = None
    status: str | None = None
    reason: str | None = None
    compensated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "external_payout_id": self.external_payout_id,
            "status": self.status,
            "reason": self.reason,
            "compensated": self.compensated,
        }


class PayoutReconciler(BaseService):
    """Applies gateway payout statuses to local records."""

    _payout_gateway: type | None = None

    @classmethod
    def get_payout_gateway(cls) -> type:
        return cls._payout_gateway or RazorpayXAdapter

    @classmethod
    def set_payout_gateway(cls, gateway: type | None) -> None:
        cls._payout_gateway = gateway

    @classmethod
    def apply_gateway_status(
        cls,
        external_payout_id: str | None,
        gateway_status: str,
        failure_reason: str | None = None,
        gateway_payload: dict | None = None,
    ) -> ServiceResult[ReconcileOutcome]:
        """
        Move a PayoutRecord to the state the gateway reports.

        Runs under a row lock so concurrent webhooks for the same payout are
        applied one after the other.
        """
        logger = cls.get_logger()
        gateway_status = (gateway_status or "").lower()
        log_context = {
            "external_payout_id": external_payout_id,
            "gateway_status": gateway_status,
        }

        if not external_payout_id:
            logger.warning("Gateway update without payout id", extra=log_context)
            return ServiceResult.success(
                ReconcileOutcome(action=ACTION_IGNORED, reason="missing_payout_id")
            )

        target = map_gateway_status(gateway_status)

        with transaction.atomic():
            record = (
                PayoutRecord.objects.select_for_update()
                .filter(external_payout_id=external_payout_id)
                .first()
            )
            if record is None:
                logger.warning("Gateway update for unknown payout", extra=log_context)
                return ServiceResult.success(
                    ReconcileOutcome(
                        action=ACTION_IGNORED,
                        external_payout_id=external_payout_id,
                        reason="unknown_payout",
                    )
                )

            if record.is_terminal:
                if record.status == target:
                    logger.info("Duplicate gateway update ignored", extra=log_context)
                    action, reason = ACTION_DUPLICATE, None
                else:
                    logger.warning(
                        "Gateway update for terminal payout ignored",
                        extra={**log_context, "current_status": record.status},
                    )
                    action, reason = ACTION_IGNORED, "terminal"
                return ServiceResult.success(
                    ReconcileOutcome(
                        action=action,
                        external_payout_id=external_payout_id,
                        status=record.status,
                        reason=reason,
                    )
                )

            compensated = False
            if target == PayoutStatus.PROCESSED:
                record.mark_processed()
            elif target == PayoutStatus.FAILED:
                record.mark_failed(failure_reason or "Payout failed at gateway")
                compensated = cls._compensate(record)
            elif target == PayoutStatus.CANCELLED:
                record.cancel(failure_reason or "Payout cancelled at gateway")
                compensated = cls._compensate(record)
            elif target == PayoutStatus.PROCESSING and record.status == PayoutStatus.QUEUED:
                record.mark_processing()

            record.gateway_status = gateway_status
            if gateway_payload:
                record.gateway_response = {
                    **(record.gateway_response or {}),
                    "last_update": gateway_payload,
                }
            record.save()

        logger.info(
            "Payout status reconciled",
            extra={**log_context, "status": record.status, "compensated": compensated},
        )
        return ServiceResult.success(
            ReconcileOutcome(
                action=ACTION_UPDATED,
                external_payout_id=external_payout_id,
                status=record.status,
                compensated=compensated,
            )
        )

    @classmethod
    def _compensate(cls, record: PayoutRecord) -> bool:
        """Move an optimistic credit to pending settlement. Caller holds the row lock."""
        if not record.was_credited_optimistically or record.compensated_at:
            return False

        moved = RecipientLedger.move_to_pending(
            record.recipient_type, record.recipient_id, record.amount
        )
        if moved:
            record.compensated_at = timezone.now()
        else:
            cls.get_logger().error(
                "Failed payout needs manual review: balance below payout amount",
                extra={
                    "reference_id": record.reference_id,
                    "recipient_type": record.recipient_type,
                    "recipient_id": str(record.recipient_id),
                    "amount": record.amount,
                },
            )
        return moved

    @classmethod
    def reconcile_stale_payouts(cls, stale_hours: int | None = None) -> dict[str, int]:
        """
        Poll the gateway for payouts still open after ``stale_hours``.

        Returns:
            Counts: checked, updated, errors
        """
        logger = cls.get_logger()
        if stale_hours is None:
            stale_hours = settings.PAYOUT_RECONCILIATION_STALE_HOURS
        cutoff = timezone.now() - timedelta(hours=stale_hours)

        records = PayoutRecord.objects.filter(
            status__in=PayoutStatus.open_states(),
            external_payout_id__isnull=False,
            created_at__lt=cutoff,
        ).order_by("created_at")[:STALE_BATCH_SIZE]

        counts = {"checked": 0, "updated": 0, "errors": 0}
        gateway = cls.get_payout_gateway()
        for record in records:
            counts["checked"] += 1
            try:
                result = gateway.fetch_payout(record.external_payout_id)
            except PayoutGatewayError as e:
                counts["errors"] += 1
                logger.warning(
                    "Could not fetch stale payout",
                    extra={
                        "external_payout_id": record.external_payout_id,
                        "error_code": e.error_code,
                    },
                )
                continue

            if result.status == record.gateway_status:
                continue

            outcome = cls.apply_gateway_status(
                record.external_payout_id,
                result.status,
                failure_reason=result.failure_reason,
                gateway_payload=result.raw_response,
            )
            if outcome.data.action == ACTION_UPDATED:
                counts["updated"] += 1

        logger.info("Stale payout reconciliation finished", extra=counts)
        return counts
