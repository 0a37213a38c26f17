"""
Payout gateway adapters.

Usage:
    from payouts.adapters import PayoutRequest, RazorpayXAdapter

    result = RazorpayXAdapter.create_payout(PayoutRequest(...))
"""

from payouts.adapters.razorpayx import (
    BankAccountValidation,
    PayoutRequest,
    PayoutResult,
    RazorpayXAdapter,
    gateway_reference,
    map_gateway_status,
)

__all__ = [
    "BankAccountValidation",
    "PayoutRequest",
    "PayoutResult",
    "RazorpayXAdapter",
    "gateway_reference",
    "map_gateway_status",
]
