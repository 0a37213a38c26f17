"""
Payout models.

- PayoutRecord: one payout attempt per (recipient, order)
- OrderDistribution: per-order distribution state machine
- WebhookEvent: stored gateway webhook events
"""

from payouts.models.order_distribution import OrderDistribution
from payouts.models.payout_record import PayoutRecord
from payouts.models.webhook_event import WebhookEvent

__all__ = [
    "OrderDistribution",
    "PayoutRecord",
    "WebhookEvent",
]
