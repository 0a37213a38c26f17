"""
WebhookEvent: every verified payout webhook, stored before processing.

The unique gateway_event_id makes redelivered webhooks a no-op, and the stored
payload lets a failed event be reprocessed by the task retry.

Usage:
    event, created = WebhookEvent.objects.get_or_create(
        gateway_event_id=request.headers["X-Razorpay-Event-Id"],
        defaults={"event_type": "payout.processed", "payload": payload},
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin
from payouts.state_machines import WebhookEventStatus

MAX_PROCESSING_ATTEMPTS = 5


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payout gateway webhook event.

    Processing Flow:
        1. View verifies the signature and stores the event (PENDING)
        2. process_webhook_event task marks it PROCESSING
        3. Handler runs the reconciler
        4. Event is marked PROCESSED or FAILED (task retries FAILED)
    """

    gateway_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="X-Razorpay-Event-Id, or a digest of the body if absent",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Gateway event type (e.g. 'payout.processed')",
    )

    payload = models.JSONField(help_text="Full webhook body")

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(null=True, blank=True)

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.gateway_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    # Helpers below do not save; the caller saves.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_payout_entity(self) -> dict:
        """
        Extract the payout object from the payload.

        Accepts the gateway's envelope ``{"payload": {"payout": {"entity": {...}}}}``
        and the flat ``{"payout": {...}}`` shape.
        """
        return extract_payout_entity(self.payload)


def extract_payout_entity(payload) -> dict:
    if not isinstance(payload, dict):
        return {}
    envelope = payload.get("payload")
    payout = envelope.get("payout") if isinstance(envelope, dict) else None
    payout = payout or payload.get("payout") or {}
    if not isinstance(payout, dict):
        return {}
    entity = payout.get("entity", payout)
    return entity if isinstance(entity, dict) else {}
