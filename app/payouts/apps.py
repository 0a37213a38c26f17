"""
Payouts app configuration.

This app provides:
- Commission split calculation
- Per-order distribution state machine
- RazorpayX payout adapter
- Payout webhook handling and reconciliation
"""

from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    """Configuration for the payouts application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payouts"
    verbose_name = "Payouts"
