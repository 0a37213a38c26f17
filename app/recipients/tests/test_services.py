"""
Tests for recipient services.

Covers:
- RecipientLedger credit / reclaim / move_to_pending
- RecipientAccountService lookups, bank-details management and validation
- The balance overview for operations
"""

import uuid

import pytest

from payouts.adapters import BankAccountValidation
from recipients.exceptions import (
    PlatformAccountNotConfiguredError,
    RecipientNotFoundError,
)
from recipients.models import RecipientType
from recipients.services import RecipientAccountService, RecipientLedger
from recipients.tests.factories import (
    DeliveryRiderFactory,
    PlatformAccountFactory,
    RestaurantFactory,
    UserFactory,
)


# =============================================================================
# RecipientLedger
# =============================================================================


@pytest.mark.django_db
class TestCredit:
    def test_increments_balance_and_total_earnings(self):
        """Should add the amount to balance and lifetime earnings."""
        restaurant = RestaurantFactory(balance=1000, total_earnings=5000)

        RecipientLedger.credit(restaurant, 800)

        restaurant.refresh_from_db()
        assert restaurant.balance == 1800
        assert restaurant.total_earnings == 5800
        assert restaurant.pending_amount == 0

    def test_zero_amount_is_noop(self):
        rider = DeliveryRiderFactory(balance=10)

        RecipientLedger.credit(rider, 0)

        rider.refresh_from_db()
        assert rider.balance == 10

    def test_negative_amount_rejected(self):
        rider = DeliveryRiderFactory()

        with pytest.raises(ValueError):
            RecipientLedger.credit(rider, -1)

    def test_missing_row_raises(self):
        """Should raise when the account no longer exists."""
        rider = DeliveryRiderFactory()
        DeliveryRiderFactory._meta.model.objects.filter(pk=rider.pk).delete()

        with pytest.raises(RecipientNotFoundError):
            RecipientLedger.credit(rider, 100)

    def test_uses_stale_instance_safely(self):
        """Should increment the stored value, not the in-memory one."""
        restaurant = RestaurantFactory(balance=0)
        stale = type(restaurant).objects.get(pk=restaurant.pk)

        RecipientLedger.credit(restaurant, 100)
        RecipientLedger.credit(stale, 100)

        restaurant.refresh_from_db()
        assert restaurant.balance == 200


@pytest.mark.django_db
class TestReclaim:
    def test_reclaims_from_balance_and_earnings(self):
        platform = PlatformAccountFactory(balance=500, total_earnings=500)

        assert RecipientLedger.reclaim(platform, 150) is True

        platform.refresh_from_db()
        assert platform.balance == 350
        assert platform.total_earnings == 350

    def test_short_balance_leaves_account_untouched(self):
        """Should refuse to drive the balance negative."""
        platform = PlatformAccountFactory(balance=100, total_earnings=1000)

        assert RecipientLedger.reclaim(platform, 150) is False

        platform.refresh_from_db()
        assert platform.balance == 100
        assert platform.total_earnings == 1000


@pytest.mark.django_db
class TestMoveToPending:
    def test_moves_balance_to_pending(self):
        """Should keep total_earnings and shift balance to pending."""
        rider = DeliveryRiderFactory(balance=300, total_earnings=300)

        moved = RecipientLedger.move_to_pending(
            RecipientType.DELIVERY_BOY, rider.pk, 150
        )

        assert moved is True
        rider.refresh_from_db()
        assert rider.balance == 150
        assert rider.pending_amount == 150
        assert rider.total_earnings == 300

    def test_short_balance_returns_false(self):
        rider = DeliveryRiderFactory(balance=50, total_earnings=300)

        moved = RecipientLedger.move_to_pending(
            RecipientType.DELIVERY_BOY, rider.pk, 150
        )

        assert moved is False
        rider.refresh_from_db()
        assert rider.balance == 50
        assert rider.pending_amount == 0


# =============================================================================
# RecipientAccountService
# =============================================================================


@pytest.mark.django_db
class TestGetAccount:
    def test_returns_account(self):
        restaurant = RestaurantFactory()

        account = RecipientAccountService.get_account(
            RecipientType.RESTAURANT, restaurant.pk
        )

        assert account == restaurant

    def test_missing_account_raises(self):
        with pytest.raises(RecipientNotFoundError):
            RecipientAccountService.get_account(RecipientType.RESTAURANT, uuid.uuid4())

    def test_malformed_id_raises_not_found(self):
        with pytest.raises(RecipientNotFoundError):
            RecipientAccountService.get_account(RecipientType.RESTAURANT, "not-a-uuid")

    def test_unknown_type_raises_not_found(self):
        with pytest.raises(RecipientNotFoundError):
            RecipientAccountService.get_account("customer", uuid.uuid4())


@pytest.mark.django_db
class TestGetPlatformAccount:
    def test_returns_configured_account(self, settings):
        platform = PlatformAccountFactory()
        settings.PLATFORM_ACCOUNT_ID = str(platform.pk)

        assert RecipientAccountService.get_platform_account() == platform

    def test_unset_setting_raises(self, settings):
        settings.PLATFORM_ACCOUNT_ID = ""

        with pytest.raises(PlatformAccountNotConfiguredError):
            RecipientAccountService.get_platform_account()

    def test_missing_row_raises(self, settings):
        settings.PLATFORM_ACCOUNT_ID = str(uuid.uuid4())

        with pytest.raises(PlatformAccountNotConfiguredError):
            RecipientAccountService.get_platform_account()


@pytest.mark.django_db
class TestAccountForUser:
    def test_finds_rider_account(self):
        user = UserFactory()
        rider = DeliveryRiderFactory(user=user)

        result = RecipientAccountService.get_account_for_user(user)

        assert result.success
        assert result.data == rider

    def test_user_without_account(self):
        result = RecipientAccountService.get_account_for_user(UserFactory())

        assert not result.success
        assert result.error_code == "RECIPIENT_NOT_FOUND"


@pytest.mark.django_db
class TestBankDetailsManagement:
    def test_update_bank_details(self):
        """Should persist encrypted details and reset verification."""
        restaurant = RestaurantFactory(bank_details_verified=True)

        RecipientAccountService.update_bank_details(
            restaurant,
            account_number="555566667777",
            ifsc_code="SBIN0000123",
            account_holder_name="Spice Route Pvt Ltd",
            bank_name="SBI",
        )

        restaurant.refresh_from_db()
        assert restaurant.bank_details["account_number"] == "555566667777"
        assert restaurant.bank_details["ifsc_code"] == "SBIN0000123"
        assert restaurant.bank_details_verified is False

    def test_clear_bank_details(self):
        restaurant = RestaurantFactory()

        RecipientAccountService.clear_bank_details(restaurant)

        restaurant.refresh_from_db()
        assert restaurant.has_bank_details is False

    def test_balance_summary_masks_account_number(self):
        rider = DeliveryRiderFactory(balance=150, total_earnings=450, pending_amount=0)

        summary = RecipientAccountService.get_balance_summary(rider)

        assert summary["balance"] == 150
        assert summary["total_earnings"] == 450
        assert summary["commission_rate"] == 15
        assert summary["bank_details"]["account_number"] == "XXXXXXXX9012"


@pytest.mark.django_db
class TestGetAllBalances:
    def test_lists_every_account(self, settings):
        restaurant = RestaurantFactory(name="Spice Route", balance=8000, total_earnings=16000)
        rider = DeliveryRiderFactory(without_bank=True, balance=1500)
        platform = PlatformAccountFactory(balance=500)
        settings.PLATFORM_ACCOUNT_ID = str(platform.pk)

        overview = RecipientAccountService.get_all_balances()

        assert overview["restaurants"] == [
            {
                "recipient_id": str(restaurant.pk),
                "name": "Spice Route",
                "balance": 8000,
                "total_earnings": 16000,
                "pending_amount": 0,
                "has_bank_details": True,
            }
        ]
        assert overview["delivery_riders"][0]["recipient_id"] == str(rider.pk)
        assert overview["delivery_riders"][0]["has_bank_details"] is False
        assert overview["platform"]["balance"] == 500

    def test_platform_missing(self, settings):
        settings.PLATFORM_ACCOUNT_ID = ""

        overview = RecipientAccountService.get_all_balances()

        assert overview == {"restaurants": [], "delivery_riders": [], "platform": None}


class TestValidateBankAccount:
    def test_delegates_to_gateway(self, mocker):
        validation = BankAccountValidation(
            is_valid=True, source="gateway", bank_name="HDFC Bank"
        )
        validate = mocker.patch(
            "recipients.services.RazorpayXAdapter.validate_bank_account",
            return_value=validation,
        )

        result = RecipientAccountService.validate_bank_account(
            "123456789012", "HDFC0000001"
        )

        assert result is validation
        validate.assert_called_once_with(
            "123456789012", "HDFC0000001", name="Account Holder"
        )
