"""
Pytest fixtures for recipient tests.
"""

import pytest

from recipients.tests.factories import (
    DeliveryRiderFactory,
    PlatformAccountFactory,
    RestaurantFactory,
    UserFactory,
)


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def restaurant(db):
    return RestaurantFactory()


@pytest.fixture
def rider(db):
    return DeliveryRiderFactory()


@pytest.fixture
def platform_account(db, settings):
    """Platform account wired into settings.PLATFORM_ACCOUNT_ID."""
    account = PlatformAccountFactory()
    settings.PLATFORM_ACCOUNT_ID = str(account.pk)
    return account
