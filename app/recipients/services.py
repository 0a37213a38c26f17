"""
Recipient account services.

RecipientLedger: money movements on earnings accounts. Every change is a
single conditional UPDATE with F() expressions, so concurrent distributions
for the same recipient cannot lose an update.

RecipientAccountService: lookups, bank-details management and the
operations balance overview, used by the distribution engine and the
recipients API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import F

from core.services import BaseService, ServiceResult
from payouts.adapters import RazorpayXAdapter
from recipients.exceptions import (
    PlatformAccountNotConfiguredError,
    RecipientNotFoundError,
)
from recipients.models import (
    RECIPIENT_MODELS,
    DeliveryRider,
    PlatformAccount,
    RecipientAccount,
    Restaurant,
    get_recipient_model,
)

if TYPE_CHECKING:
    from typing import Any

    from payouts.adapters import BankAccountValidation


class RecipientLedger(BaseService):
    """Atomic balance updates on recipient accounts."""

    @classmethod
    def credit(cls, account: RecipientAccount, amount: int) -> None:
        """
        Add ``amount`` to balance and lifetime earnings.

        Raises:
            ValueError: If amount is negative
            RecipientNotFoundError: If the row disappeared
        """
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative, got {amount}")
        if amount == 0:
            return

        updated = type(account).objects.filter(pk=account.pk).update(
            balance=F("balance") + amount,
            total_earnings=F("total_earnings") + amount,
        )
        if not updated:
            raise RecipientNotFoundError(
                f"{account.recipient_type} account {account.pk} no longer exists",
                details={"recipient_id": str(account.pk)},
            )

        cls.get_logger().info(
            "Credited recipient account",
            extra={
                "recipient_type": account.recipient_type,
                "recipient_id": str(account.pk),
                "amount": amount,
            },
        )

    @classmethod
    def reclaim(cls, account: RecipientAccount, amount: int) -> bool:
        """
        Take back a provisional credit from balance and lifetime earnings.

        Only succeeds when the balance still covers the amount.

        Returns:
            True if the amount was reclaimed, False if the balance was short
        """
        if amount <= 0:
            return True

        updated = type(account).objects.filter(
            pk=account.pk,
            balance__gte=amount,
            total_earnings__gte=amount,
        ).update(
            balance=F("balance") - amount,
            total_earnings=F("total_earnings") - amount,
        )

        log_extra = {
            "recipient_type": account.recipient_type,
            "recipient_id": str(account.pk),
            "amount": amount,
        }
        if updated:
            cls.get_logger().info("Reclaimed provisional credit", extra=log_extra)
            return True

        cls.get_logger().error(
            "Balance too low to reclaim provisional credit", extra=log_extra
        )
        return False

    @classmethod
    def move_to_pending(
        cls, recipient_type: str, recipient_id: Any, amount: int
    ) -> bool:
        """
        Move ``amount`` from balance to pending settlement.

        Used when a bank payout that was optimistically credited fails. Lifetime
        earnings are unchanged: the recipient is still owed the money.

        Returns:
            True if moved, False if the balance no longer covers the amount
        """
        if amount <= 0:
            return True

        model = get_recipient_model(recipient_type)
        updated = model.objects.filter(pk=recipient_id, balance__gte=amount).update(
            balance=F("balance") - amount,
            pending_amount=F("pending_amount") + amount,
        )

        log_extra = {
            "recipient_type": recipient_type,
            "recipient_id": str(recipient_id),
            "amount": amount,
        }
        if updated:
            cls.get_logger().info(
                "Moved failed payout amount to pending settlement", extra=log_extra
            )
            return True

        cls.get_logger().error(
            "Balance too low to move failed payout to pending settlement",
            extra=log_extra,
        )
        return False


class RecipientAccountService(BaseService):
    """Lookups and bank-details management."""

    @classmethod
    def get_account(cls, recipient_type: str, recipient_id: Any) -> RecipientAccount:
        """
        Load a recipient account.

        Raises:
            RecipientNotFoundError: Unknown type, malformed id or missing row
        """
        try:
            model = get_recipient_model(recipient_type)
        except KeyError as exc:
            raise RecipientNotFoundError(
                f"Unknown recipient type: {recipient_type}",
                details={"recipient_type": recipient_type},
            ) from exc

        try:
            return model.objects.get(pk=recipient_id)
        except (model.DoesNotExist, ValueError, DjangoValidationError) as exc:
            raise RecipientNotFoundError(
                f"{model._meta.verbose_name} not found",
                details={
                    "recipient_type": recipient_type,
                    "recipient_id": str(recipient_id),
                },
            ) from exc

    @classmethod
    def get_platform_account(cls) -> PlatformAccount:
        """
        Return the account designated by settings.PLATFORM_ACCOUNT_ID.

        Raises:
            PlatformAccountNotConfiguredError: Setting empty or row missing
        """
        account_id = settings.PLATFORM_ACCOUNT_ID
        if not account_id:
            raise PlatformAccountNotConfiguredError(
                "PLATFORM_ACCOUNT_ID is not configured"
            )
        try:
            return PlatformAccount.objects.get(pk=account_id)
        except (PlatformAccount.DoesNotExist, ValueError, DjangoValidationError) as exc:
            raise PlatformAccountNotConfiguredError(
                "PLATFORM_ACCOUNT_ID does not match a platform account",
                details={"platform_account_id": str(account_id)},
            ) from exc

    @classmethod
    def get_account_for_user(cls, user) -> ServiceResult[RecipientAccount]:
        """Find the earnings account owned by ``user``, whatever its type."""
        for model in RECIPIENT_MODELS.values():
            account = model.objects.filter(user=user).first()
            if account is not None:
                return ServiceResult.success(account)
        return ServiceResult.failure(
            "No earnings account is linked to this user",
            error_code="RECIPIENT_NOT_FOUND",
        )

    @staticmethod
    def get_balance_summary(account: RecipientAccount) -> dict:
        return {
            "recipient_type": account.recipient_type,
            "recipient_id": str(account.pk),
            "name": account.name,
            "balance": account.balance,
            "total_earnings": account.total_earnings,
            "pending_amount": account.pending_amount,
            "commission_rate": account.commission_rate,
            "bank_details": account.masked_bank_details(),
        }

    @classmethod
    def get_all_balances(cls) -> dict:
        """
        Balances of every restaurant, rider and the platform, for operations.

        ``platform`` is None when PLATFORM_ACCOUNT_ID is not configured.
        """
        try:
            platform = cls.get_platform_account()
        except PlatformAccountNotConfiguredError:
            cls.get_logger().warning("Platform account missing from balance overview")
            platform = None

        return {
            "restaurants": [
                cls._balance_row(account)
                for account in Restaurant.objects.order_by("name")
            ],
            "delivery_riders": [
                cls._balance_row(account)
                for account in DeliveryRider.objects.order_by("name")
            ],
            "platform": cls._balance_row(platform) if platform else None,
        }

    @staticmethod
    def _balance_row(account: RecipientAccount) -> dict:
        return {
            "recipient_id": str(account.pk),
            "name": account.name,
            "balance": account.balance,
            "total_earnings": account.total_earnings,
            "pending_amount": account.pending_amount,
            "has_bank_details": account.has_bank_details,
        }

    @classmethod
    def validate_bank_account(
        cls, account_number: str, ifsc_code: str, account_holder_name: str = ""
    ) -> BankAccountValidation:
        """
        Check bank details with the payout gateway before they are saved.

        Raises:
            PayoutGatewayError: Neither the gateway nor the IFSC lookup answered
        """
        validation = RazorpayXAdapter.validate_bank_account(
            account_number,
            ifsc_code,
            name=account_holder_name or "Account Holder",
        )
        cls.get_logger().info(
            "Bank account checked",
            extra={
                "ifsc_code": ifsc_code,
                "is_valid": validation.is_valid,
                "source": validation.source,
            },
        )
        return validation

    @classmethod
    def update_bank_details(
        cls,
        account: RecipientAccount,
        *,
        account_number: str,
        ifsc_code: str,
        account_holder_name: str,
        bank_name: str = "",
    ) -> RecipientAccount:
        """Encrypt and store new bank details; verification is reset."""
        account.set_bank_details(
            account_number=account_number,
            ifsc_code=ifsc_code,
            account_holder_name=account_holder_name,
            bank_name=bank_name,
        )
        account.save(
            update_fields=[
                "bank_account_number",
                "bank_ifsc_code",
                "bank_account_holder_name",
                "bank_name",
                "bank_details_verified",
                "updated_at",
            ]
        )

        cls.get_logger().info(
            "Bank details updated",
            extra={
                "recipient_type": account.recipient_type,
                "recipient_id": str(account.pk),
            },
        )
        return account

    @classmethod
    def clear_bank_details(cls, account: RecipientAccount) -> RecipientAccount:
        account.clear_bank_details()
        account.save(
            update_fields=[
                "bank_account_number",
                "bank_ifsc_code",
                "bank_account_holder_name",
                "bank_name",
                "bank_details_verified",
                "updated_at",
            ]
        )
        cls.get_logger().info(
            "Bank details removed",
            extra={
                "recipient_type": account.recipient_type,
                "recipient_id": str(account.pk),
            },
        )
        return account
