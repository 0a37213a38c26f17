"""
State enums for payout models.

These are Django TextChoices used by django-fsm fields and the admin.

State Machines Overview:

PayoutRecord States (mirror the gateway payout lifecycle):
    queued → processing → processed
    queued/processing → failed
    queued/processing → cancelled
    processed, failed and cancelled are terminal

OrderDistribution States:
    (no row) → distributing → fully_distributed
    (no row) → distributing → partially_distributed → fully_distributed

WebhookEvent States:
    pending → processing → processed
    pending → processing → failed (retried by the task)
"""

from django.db import models


class PayoutStatus(models.TextChoices):
    """
    Status of a single payout attempt.

    Terminal states: PROCESSED, FAILED, CANCELLED
    """

    QUEUED = "queued", "Queued"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
    CANCELLED = "cancelled", "Cancelled"

    @classmethod
    def terminal_states(cls) -> frozenset[str]:
        return frozenset({cls.PROCESSED, cls.FAILED, cls.CANCELLED})

    @classmethod
    def open_states(cls) -> list[str]:
        return [cls.QUEUED, cls.PROCESSING]


class PayoutMethod(models.TextChoices):
    """How the recipient was actually paid for this attempt."""

    RAZORPAY_PAYOUT = "razorpay_payout", "RazorpayX Payout"
    BALANCE_UPDATE_FALLBACK = "balance_update_fallback", "Balance Update (Fallback)"


class DistributionStatus(models.TextChoices):
    """
    Distribution progress for one order.

    PARTIALLY_DISTRIBUTED means the delivery share is parked with the platform
    until a rider is paid.
    """

    DISTRIBUTING = "distributing", "Distributing"
    PARTIALLY_DISTRIBUTED = "partially_distributed", "Partially Distributed"
    FULLY_DISTRIBUTED = "fully_distributed", "Fully Distributed"


class WebhookEventStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
