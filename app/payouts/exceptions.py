"""
Payout and distribution exceptions.

Exception Hierarchy:
    ValidationError
    ├── InvalidAmountError - Negative, fractional or non-numeric amounts
    └── PayoutValidationError - Malformed distribution input (order id, etc.)
    NotFoundError
    └── DistributionNotFoundError - No distribution recorded for the order
    ConflictError
    └── LockAcquisitionError - Another worker is distributing the same order
    ExternalServiceError
    └── PayoutGatewayError - Any failure talking to the payout gateway
        ├── PayoutGatewayRequestError (permanent) - 4xx, auth, rejected payout
        ├── PayoutGatewayUnavailableError (transient) - 5xx, network
        └── PayoutGatewayTimeoutError (transient)
    PersistenceError - Database write failed during a distribution
    SignatureMismatchError - Webhook signature did not verify

Gateway errors never escape a transfer: they trigger the balance fallback.
PersistenceError and LockAcquisitionError are what the retry queue retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


class InvalidAmountError(ValidationError):
    default_error_code = "INVALID_AMOUNT"


class PayoutValidationError(ValidationError):
    default_error_code = "PAYOUT_VALIDATION_ERROR"


class DistributionNotFoundError(NotFoundError):
    default_error_code = "DISTRIBUTION_NOT_FOUND"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another process is distributing the same order. The operation can be
    retried after a short delay.
    """

    default_error_code = "LOCK_ACQUISITION_FAILED"


class PersistenceError(BaseApplicationError):
    """
    A database write failed while money was being moved.

    Fatal to the enclosing transfer or distribution; the caller retries the
    whole distribution, which is idempotent per order.
    """

    default_error_code = "PERSISTENCE_ERROR"


class SignatureMismatchError(BaseApplicationError):
    """Webhook body does not match the X-Razorpay-Signature header."""

    default_error_code = "SIGNATURE_MISMATCH"


class PayoutGatewayError(ExternalServiceError):
    """
    Base exception for payout gateway failures.

    Attributes:
        is_retryable: Whether retrying the same request might succeed
        gateway_code: Error code reported by the gateway, if any
    """

    default_error_code = "PAYOUT_GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        gateway_code: str | None = None,
    ):
        super().__init__(message, error_code, details)
        self.gateway_code = gateway_code


class PayoutGatewayRequestError(PayoutGatewayError):
    """Gateway refused the request (bad input, auth, payout rejected)."""

    default_error_code = "PAYOUT_GATEWAY_REQUEST_ERROR"
    is_retryable = False


class PayoutGatewayUnavailableError(PayoutGatewayError):
    """Gateway returned a server error or could not be reached."""

    default_error_code = "PAYOUT_GATEWAY_UNAVAILABLE"
    is_retryable = True


class PayoutGatewayTimeoutError(PayoutGatewayError):
    """Gateway did not answer within PAYOUT_GATEWAY_TIMEOUT_SECONDS."""

    default_error_code = "PAYOUT_GATEWAY_TIMEOUT"
    is_retryable = True
