"""
PayoutRecord: one row per payout attempt to a recipient for an order.

Every transfer attempt writes exactly one record, whether the gateway took the
payout or the recipient was paid through the balance fallback. Records are
never deleted; only status and terminal fields change after insert.

Usage:
    from payouts.models import PayoutRecord
    from payouts.state_machines import PayoutStatus

    record = PayoutRecord.objects.select_for_update().get(
        external_payout_id="pout_00000000000001"
    )
    record.mark_failed("Beneficiary bank offline")
    record.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin
from payouts.state_machines import PayoutMethod, PayoutStatus
from recipients.models import RecipientType


class PayoutRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payout attempt for one (recipient, order) pair.

    State Flow:
        QUEUED -> PROCESSING -> PROCESSED
        QUEUED/PROCESSING -> FAILED
        QUEUED/PROCESSING -> CANCELLED

    Fallback records (method=BALANCE_UPDATE_FALLBACK) are created directly in
    FAILED: the bank leg failed and the recipient was credited internally.

    Fields:
        external_payout_id: Gateway payout id (pout_xxx), null if never accepted
        reference_id: Our idempotency key sent to the gateway
        recipient_type / recipient_id: Who is being paid
        amount: Amount in smallest currency unit
        status: Gateway lifecycle status (FSM)
        method: Gateway payout or balance fallback
        bank_details: Snapshot at attempt time, sensitive values encrypted
        gateway_response: Raw gateway response or error
        compensated_at: When a failed payout's credit was moved to pending
    """

    # ==========================================================================
    # Identification
    # ==========================================================================

    external_payout_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Gateway payout ID (pout_xxx)",
    )

    reference_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="{recipient_type}_{recipient_id}_{order_id}_{timestamp}",
    )

    # ==========================================================================
    # Recipient & Order
    # ==========================================================================

    recipient_type = models.CharField(
        max_length=20,
        choices=RecipientType.choices,
    )

    recipient_id = models.UUIDField()

    recipient_name = models.CharField(max_length=255, blank=True, default="")

    order_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Order this payout distributes",
    )

    order_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Order snapshot for audit",
    )

    # ==========================================================================
    # Amount & Transfer
    # ==========================================================================

    amount = models.PositiveBigIntegerField(
        help_text="Payout amount in smallest currency unit",
    )

    currency = models.CharField(max_length=3, default="INR")

    mode = models.CharField(
        max_length=10,
        default="IMPS",
        help_text="Bank transfer rail (IMPS, NEFT, RTGS, UPI)",
    )

    purpose = models.CharField(max_length=30, default="payout")

    narration = models.CharField(max_length=30, blank=True, default="")

    bank_details = models.JSONField(
        null=True,
        blank=True,
        help_text="Bank details at attempt time (account number and IFSC encrypted)",
    )

    method = models.CharField(
        max_length=30,
        choices=PayoutMethod.choices,
        default=PayoutMethod.RAZORPAY_PAYOUT,
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PayoutStatus.QUEUED,
        choices=PayoutStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current payout status (managed by FSM)",
    )

    gateway_status = models.CharField(
        max_length=30,
        blank=True,
        default="",
        help_text="Status string last reported by the gateway",
    )

    gateway_response = models.JSONField(
        default=dict,
        blank=True,
        help_text="Raw gateway response, or the error for failed attempts",
    )

    # ==========================================================================
    # Terminal Timestamps
    # ==========================================================================

    processed_at = models.DateTimeField(null=True, blank=True)

    failed_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)

    failure_reason = models.TextField(null=True, blank=True)

    compensated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the optimistic credit of a failed payout was moved to pending",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout Record"
        verbose_name_plural = "Payout Records"
        indexes = [
            models.Index(
                fields=["recipient_type", "recipient_id"],
                name="payout_recipient_idx",
            ),
            models.Index(fields=["status", "created_at"], name="payout_status_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["recipient_type", "recipient_id", "order_id"],
                condition=~models.Q(status=PayoutStatus.CANCELLED),
                name="payout_one_active_per_recipient_order",
            ),
        ]

    def __str__(self) -> str:
        return f"PayoutRecord({self.reference_id}, {self.status}, {self.amount})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PayoutStatus.QUEUED,
        target=PayoutStatus.PROCESSING,
    )
    def mark_processing(self):
        """Gateway started moving the money."""

    @transition(
        field=status,
        source=[PayoutStatus.QUEUED, PayoutStatus.PROCESSING],
        target=PayoutStatus.PROCESSED,
    )
    def mark_processed(self):
        """
        Gateway confirmed the transfer reached the bank.

        Transition: QUEUED/PROCESSING -> PROCESSED
        """
        self.processed_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutStatus.QUEUED, PayoutStatus.PROCESSING],
        target=PayoutStatus.FAILED,
    )
    def mark_failed(self, reason: str | None = None):
        """
        Gateway reported the transfer failed.

        Transition: QUEUED/PROCESSING -> FAILED
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason

    @transition(
        field=status,
        source=[PayoutStatus.QUEUED, PayoutStatus.PROCESSING],
        target=PayoutStatus.CANCELLED,
    )
    def cancel(self, reason: str | None = None):
        self.cancelled_at = timezone.now()
        if reason:
            self.failure_reason = reason

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status in PayoutStatus.terminal_states()

    @property
    def is_fallback(self) -> bool:
        return self.method == PayoutMethod.BALANCE_UPDATE_FALLBACK

    @property
    def was_credited_optimistically(self) -> bool:
        """The recipient was credited when the gateway accepted this payout."""
        return self.method == PayoutMethod.RAZORPAY_PAYOUT
