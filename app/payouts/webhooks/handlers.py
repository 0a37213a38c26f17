"""
Webhook event handlers for payout gateway events.

Handlers are registered per event type and receive the stored WebhookEvent.
Event types without a handler are acknowledged with "no action taken" so the
gateway stops redelivering them.

Usage:
    from payouts.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("payout.reversed")
    def handle_payout_reversed(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult
from payouts.models import WebhookEvent
from payouts.services import PayoutReconciler

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """Decorator registering ``func`` as the handler for ``event_type``."""

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to its handler.

    Returns:
        ServiceResult from the handler, or success with "No action taken"
        when no handler is registered
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"gateway_event_id": webhook_event.gateway_event_id},
        )
        return ServiceResult.success({"message": "No action taken"})

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"gateway_event_id": webhook_event.gateway_event_id},
    )
    return handler(webhook_event)


# =============================================================================
# Payout Handlers
# =============================================================================


def _apply_payout_event(webhook_event: WebhookEvent, gateway_status: str) -> ServiceResult:
    entity = webhook_event.get_payout_entity()
    payout_id = entity.get("id")

    if not payout_id:
        logger.error(
            f"{webhook_event.event_type}: payout id missing from payload",
            extra={"gateway_event_id": webhook_event.gateway_event_id},
        )
        return ServiceResult.failure(
            "Payout id missing from webhook payload",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    failure_reason = entity.get("failure_reason")
    if not failure_reason and isinstance(entity.get("status_details"), dict):
        failure_reason = entity["status_details"].get("description")

    result = PayoutReconciler.apply_gateway_status(
        payout_id,
        gateway_status,
        failure_reason=failure_reason,
        gateway_payload=entity,
    )
    if result.success:
        return ServiceResult.success(result.data.to_dict())
    return result


@register_handler("payout.processed")
def handle_payout_processed(webhook_event: WebhookEvent) -> ServiceResult:
    """Payout reached the beneficiary bank."""
    return _apply_payout_event(webhook_event, "processed")


@register_handler("payout.failed")
def handle_payout_failed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Payout failed at the bank.

    The recipient was credited when the gateway accepted the payout, so the
    reconciler moves that credit to pending settlement.
    """
    return _apply_payout_event(webhook_event, "failed")
