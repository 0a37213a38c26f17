"""
WSGI entry point for the payout distribution service.

Gunicorn (web) imports ``application`` from here; Celery workers use
config.celery instead.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
