"""
Recipients app configuration.

Holds the earnings accounts (balance, lifetime earnings, pending settlement)
and the encrypted bank details used for payouts.
"""

from django.apps import AppConfig


class RecipientsConfig(AppConfig):
    """Configuration for the recipients application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "recipients"
    verbose_name = "Recipients"
