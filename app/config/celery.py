"""
Celery configuration for the payout distribution service.

Workers run:
- distribute_order_payment: the retry queue for order distributions
- process_webhook_event: asynchronous webhook reconciliation
- assign_delivery_rider: pays a rider assigned after distribution
- reconcile_stale_payouts, retry_failed_webhooks: celery beat sweeps

Redis is both broker and result backend. Tasks are auto-discovered from the
installed apps.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
