"""
DRF serializers for the recipients API.

Related files:
    - views.py: Balance and bank-details endpoints
    - services.py: RecipientAccountService
"""

from __future__ import annotations

import re

from rest_framework import serializers

IFSC_PATTERN = r"^[A-Z]{4}0[A-Z0-9]{6}$"
ACCOUNT_NUMBER_PATTERN = r"^\d{9,18}$"


class MaskedBankDetailsSerializer(serializers.Serializer):
    account_number = serializers.CharField(read_only=True)
    ifsc_code = serializers.CharField(read_only=True)
    account_holder_name = serializers.CharField(read_only=True)
    bank_name = serializers.CharField(read_only=True)
    is_verified = serializers.BooleanField(read_only=True)


class BalanceSerializer(serializers.Serializer):
    """
    Earnings summary for the authenticated recipient.

    Amounts are integers in the smallest currency unit.
    """

    recipient_type = serializers.CharField(read_only=True)
    recipient_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    balance = serializers.IntegerField(read_only=True)
    total_earnings = serializers.IntegerField(read_only=True)
    pending_amount = serializers.IntegerField(read_only=True)
    commission_rate = serializers.IntegerField(read_only=True)
    bank_details = MaskedBankDetailsSerializer(read_only=True, allow_null=True)


class BankAccountFieldsSerializer(serializers.Serializer):
    """
    Account number and IFSC code.

    IFSC codes are normalized to upper case before validation.
    """

    account_number = serializers.RegexField(
        ACCOUNT_NUMBER_PATTERN,
        error_messages={"invalid": "Account number must be 9 to 18 digits."},
    )
    ifsc_code = serializers.CharField(max_length=11)

    def validate_ifsc_code(self, value: str) -> str:
        value = value.strip().upper()
        if not re.fullmatch(IFSC_PATTERN, value):
            raise serializers.ValidationError("Invalid IFSC code.")
        return value


class BankDetailsUpdateSerializer(BankAccountFieldsSerializer):
    """Request body for PUT /recipients/me/bank-details/."""

    account_holder_name = serializers.CharField(max_length=255)
    bank_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )

    def validate_account_holder_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Account holder name is required.")
        return value


class BankAccountValidationRequestSerializer(BankAccountFieldsSerializer):
    """Request body for POST /recipients/bank-details/validate/."""

    account_holder_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )


class BankAccountValidationSerializer(serializers.Serializer):
    is_valid = serializers.BooleanField(read_only=True)
    source = serializers.CharField(read_only=True)
    bank_name = serializers.CharField(read_only=True, allow_null=True)
    account_holder_name = serializers.CharField(read_only=True, allow_null=True)


class AccountBalanceRowSerializer(serializers.Serializer):
    recipient_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    balance = serializers.IntegerField(read_only=True)
    total_earnings = serializers.IntegerField(read_only=True)
    pending_amount = serializers.IntegerField(read_only=True)
    has_bank_details = serializers.BooleanField(read_only=True)


class AllBalancesSerializer(serializers.Serializer):
    """Balance overview for staff: every restaurant, rider and the platform."""

    restaurants = AccountBalanceRowSerializer(many=True, read_only=True)
    delivery_riders = AccountBalanceRowSerializer(many=True, read_only=True)
    platform = AccountBalanceRowSerializer(read_only=True, allow_null=True)
