"""
Recipient earnings accounts.

Three concrete models share one abstract base:

    Restaurant       - receives 80% of each order
    DeliveryRider    - receives 15% of each order it delivers
    PlatformAccount  - receives the 5% commission plus any delivery share that
                       has no rider yet

Money fields are integers in the smallest currency unit (paise). They are
only ever changed with single UPDATE statements (see recipients.services), so
never assign to them on an instance and call save().

Bank account number and IFSC code are stored encrypted (recipients.encryption).
"""

from __future__ import annotations

from typing import ClassVar

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from recipients.encryption import decrypt_value, encrypt_value, mask_account_number


class RecipientType(models.TextChoices):
    """Who a payout or credit is for."""

    RESTAURANT = "restaurant", "Restaurant"
    DELIVERY_BOY = "delivery_boy", "Delivery Rider"
    ADMIN = "admin", "Platform"


class RecipientAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    Abstract earnings account.

    Fields:
        balance: Credited by distributions, not yet settled out
        total_earnings: Lifetime credited amount
        pending_amount: Amount awaiting manual settlement (failed bank payouts)
        bank_*: Payout destination, account number and IFSC encrypted
    """

    recipient_type: ClassVar[str]
    commission_rate: ClassVar[int]

    # ==========================================================================
    # Identity
    # ==========================================================================

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(class)s_account",
        help_text="Login that owns this account",
    )

    name = models.CharField(
        max_length=255,
        help_text="Display name, also used as the payout contact name",
    )

    # ==========================================================================
    # Earnings
    # ==========================================================================

    balance = models.PositiveBigIntegerField(
        default=0,
        help_text="Internal ledger balance in smallest currency unit",
    )

    total_earnings = models.PositiveBigIntegerField(
        default=0,
        help_text="Lifetime credited earnings in smallest currency unit",
    )

    pending_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Amount awaiting manual settlement in smallest currency unit",
    )

    # ==========================================================================
    # Bank Details
    # ==========================================================================

    bank_account_number = models.TextField(
        blank=True,
        default="",
        help_text="Encrypted bank account number",
    )

    bank_ifsc_code = models.TextField(
        blank=True,
        default="",
        help_text="Encrypted IFSC code",
    )

    bank_account_holder_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
    )

    bank_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
    )

    bank_details_verified = models.BooleanField(
        default=False,
        help_text="Set by operations after a penny-drop check",
    )

    class Meta:
        abstract = True
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_account_number)

    @property
    def bank_details(self) -> dict | None:
        """
        Decrypted bank details, or None when no account number is on file.

        Raises:
            BankDetailsDecryptionError: If stored values cannot be decrypted
        """
        if not self.has_bank_details:
            return None
        return {
            "account_number": decrypt_value(self.bank_account_number),
            "ifsc_code": decrypt_value(self.bank_ifsc_code),
            "account_holder_name": self.bank_account_holder_name,
            "bank_name": self.bank_name,
            "is_verified": self.bank_details_verified,
        }

    def masked_bank_details(self) -> dict | None:
        details = self.bank_details
        if details is None:
            return None
        details["account_number"] = mask_account_number(details["account_number"])
        return details

    def set_bank_details(
        self,
        *,
        account_number: str,
        ifsc_code: str,
        account_holder_name: str,
        bank_name: str = "",
    ) -> None:
        """
        Encrypt and assign bank details. Does not save.

        Changing bank details always resets verification.
        """
        self.bank_account_number = encrypt_value(account_number)
        self.bank_ifsc_code = encrypt_value(ifsc_code)
        self.bank_account_holder_name = account_holder_name
        self.bank_name = bank_name
        self.bank_details_verified = False

    def clear_bank_details(self) -> None:
        self.bank_account_number = ""
        self.bank_ifsc_code = ""
        self.bank_account_holder_name = ""
        self.bank_name = ""
        self.bank_details_verified = False


class Restaurant(RecipientAccount):
    """Restaurant earnings account."""

    recipient_type = RecipientType.RESTAURANT
    commission_rate = 80

    class Meta(RecipientAccount.Meta):
        verbose_name = "Restaurant"
        verbose_name_plural = "Restaurants"


class DeliveryRider(RecipientAccount):
    """Delivery rider earnings account."""

    recipient_type = RecipientType.DELIVERY_BOY
    commission_rate = 15

    class Meta(RecipientAccount.Meta):
        verbose_name = "Delivery Rider"
        verbose_name_plural = "Delivery Riders"


class PlatformAccount(RecipientAccount):
    """
    Platform commission account.

    Exactly one row is designated by settings.PLATFORM_ACCOUNT_ID. The platform
    has no external bank leg in the distribution flow.
    """

    recipient_type = RecipientType.ADMIN
    commission_rate = 5

    class Meta(RecipientAccount.Meta):
        verbose_name = "Platform Account"
        verbose_name_plural = "Platform Accounts"


RECIPIENT_MODELS: dict[str, type[RecipientAccount]] = {
    RecipientType.RESTAURANT: Restaurant,
    RecipientType.DELIVERY_BOY: DeliveryRider,
    RecipientType.ADMIN: PlatformAccount,
}


def get_recipient_model(recipient_type: str) -> type[RecipientAccount]:
    """
    Resolve a RecipientType value to its model class.

    Raises:
        KeyError: For an unknown recipient type
    """
    return RECIPIENT_MODELS[recipient_type]
