"""
Pytest fixtures for payout tests.

The payout gateway is replaced with a MagicMock through
DistributionService.set_payout_gateway(); by default every payout is accepted
in "processing" with a fresh pout_ id.
"""

import itertools

import pytest

from payouts.services import DistributionService, PayoutReconciler
from payouts.tests.factories import gateway_result
from recipients.tests.factories import (
    DeliveryRiderFactory,
    PlatformAccountFactory,
    RestaurantFactory,
)


@pytest.fixture
def payout_gateway(mocker):
    """Mock gateway accepting every payout."""
    counter = itertools.count(1)
    gateway = mocker.MagicMock()
    gateway.create_payout.side_effect = lambda request: gateway_result(
        request, payout_id=f"pout_{next(counter):014d}"
    )

    DistributionService.set_payout_gateway(gateway)
    PayoutReconciler.set_payout_gateway(gateway)
    yield gateway
    DistributionService.set_payout_gateway(None)
    PayoutReconciler.set_payout_gateway(None)


@pytest.fixture
def restaurant(db):
    return RestaurantFactory(name="Spice Route")


@pytest.fixture
def rider(db):
    return DeliveryRiderFactory(name="Ravi Kumar")


@pytest.fixture
def platform_account(db, settings):
    """Platform account wired into settings.PLATFORM_ACCOUNT_ID."""
    account = PlatformAccountFactory()
    settings.PLATFORM_ACCOUNT_ID = str(account.pk)
    return account
