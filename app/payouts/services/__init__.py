"""
Payout services.

- DistributionService: splits an order payment and pays every recipient
- PayoutReconciler: applies gateway outcomes (webhooks, stale sweep)
- PayoutQueryService: payout lookups for the API

Usage:
    from payouts.services import DistributionService

    result = DistributionService.distribute_payment(
        order_data={"order_id": "ORD-1001"},
        total_amount=100000,
        restaurant_id=restaurant.id,
        delivery_rider_id=None,
    )

    # Later, once a rider picked the order up
    DistributionService.assign_delivery_rider("ORD-1001", rider.id)
"""

from payouts.services.distribution_service import (
    DistributionEntry,
    DistributionResult,
    DistributionService,
)
from payouts.services.payout_query_service import PayoutQueryService
from payouts.services.reconciliation_service import (
    PayoutReconciler,
    ReconcileOutcome,
)

__all__ = [
    "DistributionEntry",
    "DistributionResult",
    "DistributionService",
    "PayoutQueryService",
    "PayoutReconciler",
    "ReconcileOutcome",
]
