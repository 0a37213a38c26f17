# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, WSGI and Celery configuration for the payout distribution
# service. The Celery app is imported here so shared_task decorators in the
# recipients/payouts apps bind to it when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
