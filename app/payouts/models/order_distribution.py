"""
OrderDistribution: per-order distribution progress.

The row is created under the per-order lock before any money moves, so a
second distribute call for the same order sees it and only does what is
still missing (the late rider delta, or the steps a crashed run left undone).
"""

from __future__ import annotations

from django.db import models

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from payouts.state_machines import DistributionStatus


class OrderDistribution(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    How one order's payment was split and how far distribution got.

    State Flow:
        DISTRIBUTING -> FULLY_DISTRIBUTED
        DISTRIBUTING -> PARTIALLY_DISTRIBUTED -> FULLY_DISTRIBUTED

    Fields:
        restaurant_amount / delivery_amount / platform_amount: The split
        platform_credited_amount: Net platform credit so far (None until the
            platform step ran)
        absorbed_delivery_amount: Delivery share the platform currently holds
        platform_reclaim_shortfall: Absorbed share that could not be taken
            back from the platform balance when the rider was paid
    """

    order_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Order being distributed",
    )

    order_data = models.JSONField(default=dict, blank=True)

    restaurant_id = models.UUIDField()

    delivery_rider_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="Rider paid for this order, once known",
    )

    # ==========================================================================
    # Split
    # ==========================================================================

    total_amount = models.PositiveBigIntegerField()

    restaurant_amount = models.PositiveBigIntegerField()

    delivery_amount = models.PositiveBigIntegerField()

    platform_amount = models.PositiveBigIntegerField(
        help_text="Platform commission before any delivery reallocation",
    )

    # ==========================================================================
    # Progress
    # ==========================================================================

    status = FSMField(
        default=DistributionStatus.DISTRIBUTING,
        choices=DistributionStatus.choices,
        db_index=True,
        protected=True,
    )

    platform_credited_amount = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Net amount credited to the platform for this order",
    )

    absorbed_delivery_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Delivery share currently held by the platform",
    )

    platform_reclaim_shortfall = models.PositiveBigIntegerField(default=0)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order Distribution"
        verbose_name_plural = "Order Distributions"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(
                    total_amount=models.F("restaurant_amount")
                    + models.F("delivery_amount")
                    + models.F("platform_amount")
                ),
                name="distribution_split_sums_to_total",
            ),
        ]

    def __str__(self) -> str:
        return f"OrderDistribution({self.order_id}, {self.status})"

    @transition(
        field=status,
        source=DistributionStatus.DISTRIBUTING,
        target=DistributionStatus.PARTIALLY_DISTRIBUTED,
    )
    def mark_partially_distributed(self):
        """Delivery share parked with the platform until a rider is paid."""

    @transition(
        field=status,
        source=[
            DistributionStatus.DISTRIBUTING,
            DistributionStatus.PARTIALLY_DISTRIBUTED,
        ],
        target=DistributionStatus.FULLY_DISTRIBUTED,
    )
    def mark_fully_distributed(self):
        pass

    @property
    def platform_credited(self) -> bool:
        return self.platform_credited_amount is not None

    @property
    def is_complete(self) -> bool:
        return self.status == DistributionStatus.FULLY_DISTRIBUTED
