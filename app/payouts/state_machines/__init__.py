"""
State machine enums for payout models (used with django-fsm).
"""

from payouts.state_machines.states import (
    DistributionStatus,
    PayoutMethod,
    PayoutStatus,
    WebhookEventStatus,
)

__all__ = [
    "DistributionStatus",
    "PayoutMethod",
    "PayoutStatus",
    "WebhookEventStatus",
]
