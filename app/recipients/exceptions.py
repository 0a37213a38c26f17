"""
Recipient account exceptions.

Hierarchy:
    NotFoundError
    └── RecipientNotFoundError
    ValidationError
    ├── MissingBankDetailsError
    └── BankDetailsDecryptionError
    BaseApplicationError
    └── PlatformAccountNotConfiguredError
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError


class RecipientNotFoundError(NotFoundError):
    """Restaurant, rider or platform account does not exist."""

    default_error_code = "RECIPIENT_NOT_FOUND"


class MissingBankDetailsError(ValidationError):
    """Recipient has no account number or IFSC code on file, so no payout can be made."""

    default_error_code = "MISSING_BANK_DETAILS"


class BankDetailsDecryptionError(ValidationError):
    """
    Stored bank details could not be decrypted.

    Usually means BANK_DETAILS_ENCRYPTION_KEY was rotated without
    re-encrypting existing rows.
    """

    default_error_code = "BANK_DETAILS_DECRYPTION_FAILED"


class PlatformAccountNotConfiguredError(BaseApplicationError):
    """
    PLATFORM_ACCOUNT_ID is unset or points at a missing account.

    A deployment error rather than a runtime condition; retrying will not help.
    """

    default_error_code = "PLATFORM_ACCOUNT_NOT_CONFIGURED"
