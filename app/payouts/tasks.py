"""
Celery tasks for payment distribution and payout reconciliation.

- distribute_order_payment: retry queue around DistributionService
- assign_delivery_rider: pays a late rider for an already distributed order
- process_webhook_event: runs the handler for a stored WebhookEvent
- retry_failed_webhooks / reconcile_stale_payouts: celery-beat sweeps

Usage:
    from payouts.tasks import distribute_order_payment

    distribute_order_payment.delay(
        {"order_id": "ORD-1001"}, 100000, str(restaurant.id), str(rider.id)
    )
"""

from __future__ import annotations

import logging
from uuid import UUID

from celery import shared_task
from django.conf import settings

from core.exceptions import BaseApplicationError
from payouts.exceptions import LockAcquisitionError, PersistenceError
from payouts.models import WebhookEvent
from payouts.models.webhook_event import MAX_PROCESSING_ATTEMPTS
from payouts.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RETRYABLE_DISTRIBUTION_ERRORS = (PersistenceError, LockAcquisitionError)
DISTRIBUTION_RETRY_BACKOFF_MAX = 300


def _retry_countdown(retries: int) -> int:
    return min(2 ** (retries + 1), DISTRIBUTION_RETRY_BACKOFF_MAX)


# =============================================================================
# Distribution Tasks
# =============================================================================


@shared_task(bind=True, acks_late=True)
def distribute_order_payment(
    self,
    order_data: dict,
    total_amount: int,
    restaurant_id: str,
    delivery_rider_id: str | None = None,
) -> dict:
    """
    Distribute an order payment, retrying transient failures.

    Persistence errors and lock contention are retried with exponential
    backoff up to DISTRIBUTION_MAX_RETRIES; the distribution is idempotent per
    order, so a retry never pays anyone twice. Other application errors
    (invalid amount, missing platform account) are not retried.

    Returns:
        DistributionResult as a dict; a failed result once retries run out
    """
    from payouts.services import DistributionService

    order_id = order_data.get("order_id") if isinstance(order_data, dict) else None

    try:
        result = DistributionService.distribute_payment(
            order_data, total_amount, restaurant_id, delivery_rider_id
        )
    except RETRYABLE_DISTRIBUTION_ERRORS as e:
        max_retries = settings.DISTRIBUTION_MAX_RETRIES
        if self.request.retries < max_retries:
            countdown = _retry_countdown(self.request.retries)
            logger.warning(
                "Distribution failed, scheduling retry",
                extra={
                    "order_id": order_id,
                    "error_code": e.error_code,
                    "retry": self.request.retries + 1,
                    "countdown": countdown,
                },
            )
            raise self.retry(exc=e, countdown=countdown, max_retries=max_retries)

        logger.error(
            "Distribution failed after all retries",
            extra={"order_id": order_id, "error_code": e.error_code},
        )
        return _failed_result(order_id, e)
    except BaseApplicationError as e:
        logger.error(
            "Distribution failed",
            extra={"order_id": order_id, "error_code": e.error_code},
        )
        return _failed_result(order_id, e)

    return result.to_dict()


@shared_task(bind=True, acks_late=True)
def assign_delivery_rider(self, order_id: str, rider_id: str) -> dict:
    """Pay the parked delivery share of ``order_id`` to ``rider_id``."""
    from payouts.services import DistributionService

    try:
        result = DistributionService.assign_delivery_rider(order_id, rider_id)
    except RETRYABLE_DISTRIBUTION_ERRORS as e:
        max_retries = settings.DISTRIBUTION_MAX_RETRIES
        if self.request.retries < max_retries:
            raise self.retry(
                exc=e,
                countdown=_retry_countdown(self.request.retries),
                max_retries=max_retries,
            )
        return _failed_result(order_id, e)
    except BaseApplicationError as e:
        logger.error(
            "Rider assignment failed",
            extra={"order_id": order_id, "error_code": e.error_code},
        )
        return _failed_result(order_id, e)

    return result.to_dict()


def _failed_result(order_id: str | None, error: BaseApplicationError) -> dict:
    return {
        "success": False,
        "order_id": order_id,
        "status": None,
        "message": error.message,
        "error_code": error.error_code,
        "distributions": [],
    }


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_PROCESSING_ATTEMPTS},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a stored payout webhook event.

    Steps:
        1. Load the WebhookEvent (skip if already processed)
        2. Mark it processing
        3. Dispatch to the registered handler
        4. Mark processed, or failed (exceptions re-raised for Celery retry)
    """
    from payouts.webhooks.handlers import dispatch_webhook

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.is_processed:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "gateway_event_id": webhook_event.gateway_event_id,
            },
        )
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    webhook_event.mark_processing()
    webhook_event.save()

    try:
        result = dispatch_webhook(webhook_event)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()
        logger.exception(
            "Webhook processing failed with exception",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "gateway_event_id": webhook_event.gateway_event_id,
            },
        )
        raise

    if not result.success:
        error_msg = result.error or "Handler returned failure"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()
        logger.warning(
            f"Webhook handler failed: {error_msg}",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "gateway_event_id": webhook_event.gateway_event_id,
                "error_code": result.error_code,
            },
        )
        return {
            "status": "handler_failed",
            "webhook_event_id": str(webhook_event_id),
            "error": error_msg,
        }

    webhook_event.mark_processed()
    webhook_event.save()
    logger.info(
        "Webhook processed successfully",
        extra={
            "webhook_event_id": str(webhook_event_id),
            "gateway_event_id": webhook_event.gateway_event_id,
        },
    )
    return {
        "status": "processed",
        "webhook_event_id": str(webhook_event_id),
        "result": result.data,
    }


# =============================================================================
# Periodic Tasks
# =============================================================================


@shared_task
def retry_failed_webhooks() -> dict:
    """Re-queue failed webhook events that still have attempts left."""
    failed_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=MAX_PROCESSING_ATTEMPTS,
    ).order_by("created_at")[:100]

    queued_count = 0
    for webhook in failed_webhooks:
        process_webhook_event.delay(str(webhook.id))
        queued_count += 1

    logger.info(f"Queued {queued_count} failed webhooks for retry")
    return {"queued": queued_count}


@shared_task
def reconcile_stale_payouts() -> dict:
    """Poll the gateway for payouts stuck in queued/processing."""
    from payouts.services import PayoutReconciler

    return PayoutReconciler.reconcile_stale_payouts()
