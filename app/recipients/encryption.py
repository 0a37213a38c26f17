"""
Symmetric encryption for bank details at rest.

Account numbers and IFSC codes are stored as Fernet tokens (AES-128-CBC with
HMAC-SHA256) and only decrypted when a payout request is built or when the
owner reads their own details through the API.

Usage:
    from recipients.encryption import encrypt_value, decrypt_value

    token = encrypt_value("123456789012")
    decrypt_value(token)  # "123456789012"
"""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings

from recipients.exceptions import BankDetailsDecryptionError


def _encryption_key() -> bytes:
    key = settings.BANK_DETAILS_ENCRYPTION_KEY
    if key:
        return key.encode()
    # Local development fallback: derive a stable key from SECRET_KEY
    digest = hashlib.sha256(settings.SECRET_KEY.encode()).digest()
    return base64.urlsafe_b64encode(digest)


def get_cipher() -> Fernet:
    return Fernet(_encryption_key())


def encrypt_value(value: str) -> str:
    """Encrypt a plaintext value. Empty values stay empty."""
    if not value:
        return ""
    return get_cipher().encrypt(value.encode()).decode()


def decrypt_value(token: str) -> str:
    """
    Decrypt a stored token.

    Raises:
        BankDetailsDecryptionError: If the token was produced with another key
            or has been tampered with
    """
    if not token:
        return ""
    try:
        return get_cipher().decrypt(token.encode()).decode()
    except InvalidToken as exc:
        raise BankDetailsDecryptionError(
            "Stored bank details could not be decrypted",
        ) from exc


def mask_account_number(account_number: str) -> str:
    """Keep the last four digits, e.g. ``XXXXXXXX9012``."""
    if len(account_number) <= 4:
        return account_number
    return "X" * (len(account_number) - 4) + account_number[-4:]
