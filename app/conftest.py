"""
Project-wide pytest configuration.

Configures Django for tests, marks tests by filename and provides fixtures
shared by the recipients and payouts apps.
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # The test client speaks plain HTTP
    settings.SECURE_SSL_REDIRECT = False

    # Fast password hasher for tests
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full distribution + webhook journeys)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_commission.py, test_locks.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_handlers.py",
        "test_distribution_service.py",
        "test_reconciliation_service.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_commission.py",
        "test_encryption.py",
        "test_exceptions.py",
        "test_adapters.py",
        "test_locks.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def mock_redis_lock(mocker):
    """Mock Redis for the per-order distribution lock."""
    mock_redis = mocker.MagicMock()
    mock_redis.set.return_value = True
    mock_redis.eval.return_value = 1

    mocker.patch("payouts.locks.get_redis_connection", return_value=mock_redis)
    return mock_redis
