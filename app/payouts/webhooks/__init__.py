"""
Webhook handling for payout events from RazorpayX.

Webhooks are verified, stored idempotently and processed asynchronously by
payouts.tasks.process_webhook_event.
"""

from payouts.webhooks.handlers import dispatch_webhook, register_handler
from payouts.webhooks.views import razorpay_webhook

__all__ = [
    "dispatch_webhook",
    "register_handler",
    "razorpay_webhook",
]
