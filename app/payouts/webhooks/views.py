"""
Webhook endpoint for RazorpayX payout events.

The view verifies the signature, stores the event idempotently and queues it
for processing. It never runs the reconciler inline.

Usage:
    from payouts.webhooks.views import razorpay_webhook

    urlpatterns = [
        path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    ]
"""

from __future__ import annotations

import hashlib
import json
import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payouts.adapters import RazorpayXAdapter
from payouts.exceptions import SignatureMismatchError
from payouts.models import WebhookEvent
from payouts.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def razorpay_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue RazorpayX webhook events.

    Returns:
        HttpResponse with status:
        - 200: Event accepted (new or duplicate)
        - 400: Missing/invalid signature or malformed body

    Idempotency:
        X-Razorpay-Event-Id is the WebhookEvent key. When the header is
        absent, a digest of the body is used so byte-identical redeliveries
        still collapse into one event.
    """
    payload = request.body
    signature = request.headers.get("X-Razorpay-Signature", "")

    try:
        RazorpayXAdapter.verify_webhook_signature(payload, signature)
    except SignatureMismatchError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message},
        )
        return HttpResponse("Invalid signature", status=400)

    try:
        event_data = json.loads(payload)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON")
        return HttpResponse("Invalid payload", status=400)

    event_type = event_data.get("event") if isinstance(event_data, dict) else None
    if not event_type:
        logger.warning("Webhook missing event type")
        return HttpResponse("Invalid event", status=400)

    gateway_event_id = (
        request.headers.get("X-Razorpay-Event-Id")
        or f"body_{hashlib.sha256(payload).hexdigest()}"
    )

    logger.info(
        f"Received payout webhook: {event_type}",
        extra={"gateway_event_id": gateway_event_id, "event_type": event_type},
    )

    webhook_event, created = WebhookEvent.objects.get_or_create(
        gateway_event_id=gateway_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
            "status": WebhookEventStatus.PENDING,
        },
    )

    if not created:
        if webhook_event.is_processed:
            logger.info(
                "Webhook already processed, returning success",
                extra={"gateway_event_id": gateway_event_id},
            )
            return HttpResponse("Already processed", status=200)

        logger.info(
            f"Webhook already exists with status: {webhook_event.status}",
            extra={"gateway_event_id": gateway_event_id},
        )

    try:
        from payouts.tasks import process_webhook_event

        process_webhook_event.delay(str(webhook_event.id))
        logger.info(
            "Webhook queued for processing",
            extra={
                "gateway_event_id": gateway_event_id,
                "webhook_event_id": str(webhook_event.id),
            },
        )
    except Exception as e:
        logger.error(
            "Failed to queue webhook",
            extra={"gateway_event_id": gateway_event_id},
            exc_info=True,
        )
        # FAILED events are re-queued by retry_failed_webhooks
        if webhook_event.status == WebhookEventStatus.PENDING:
            webhook_event.mark_failed(f"Queueing failed: {type(e).__name__}: {e}")
            webhook_event.save(update_fields=["status", "error_message", "updated_at"])

    return HttpResponse("Accepted", status=200)
