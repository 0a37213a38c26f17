"""
Root pytest configuration for the Django project.

The Django project lives under app/ (added to sys.path by the pytest
``pythonpath`` option). Project-wide hooks and fixtures are in
app/conftest.py; app-specific fixtures in each app's tests/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
