"""
Tests for recipient account models.
"""

import pytest

from recipients.encryption import decrypt_value
from recipients.models import (
    DeliveryRider,
    PlatformAccount,
    Restaurant,
    RecipientType,
    get_recipient_model,
)
from recipients.tests.factories import DeliveryRiderFactory, RestaurantFactory


class TestRecipientTypes:
    def test_get_recipient_model(self):
        """Should map each recipient type to its model."""
        assert get_recipient_model(RecipientType.RESTAURANT) is Restaurant
        assert get_recipient_model(RecipientType.DELIVERY_BOY) is DeliveryRider
        assert get_recipient_model(RecipientType.ADMIN) is PlatformAccount

    def test_unknown_type_raises_key_error(self):
        with pytest.raises(KeyError):
            get_recipient_model("customer")

    def test_commission_rates(self):
        """Rates add up to 100 percent."""
        assert Restaurant.commission_rate == 80
        assert DeliveryRider.commission_rate == 15
        assert PlatformAccount.commission_rate == 5


@pytest.mark.django_db
class TestBankDetails:
    def test_bank_details_are_decrypted(self):
        """Should return decrypted bank details."""
        restaurant = RestaurantFactory(name="Spice Route")

        details = restaurant.bank_details

        assert details["account_number"] == "123456789012"
        assert details["ifsc_code"] == "HDFC0000001"
        assert details["account_holder_name"] == "Spice Route"
        assert details["is_verified"] is True

    def test_bank_details_none_without_account_number(self):
        """Should return None when no account number is stored."""
        rider = DeliveryRiderFactory(without_bank=True)

        assert rider.has_bank_details is False
        assert rider.bank_details is None
        assert rider.masked_bank_details() is None

    def test_masked_bank_details(self):
        restaurant = RestaurantFactory()

        assert restaurant.masked_bank_details()["account_number"] == "XXXXXXXX9012"

    def test_set_bank_details_encrypts_and_resets_verification(self):
        """Should store ciphertext and require re-verification."""
        rider = DeliveryRiderFactory(bank_details_verified=True)

        rider.set_bank_details(
            account_number="987654321098",
            ifsc_code="ICIC0000002",
            account_holder_name="Ravi Kumar",
        )

        assert rider.bank_account_number != "987654321098"
        assert decrypt_value(rider.bank_account_number) == "987654321098"
        assert rider.bank_details_verified is False

    def test_clear_bank_details(self):
        restaurant = RestaurantFactory()

        restaurant.clear_bank_details()

        assert restaurant.bank_details is None
        assert restaurant.bank_name == ""
