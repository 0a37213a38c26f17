"""
RazorpayX payout gateway adapter.

All payout gateway calls go through RazorpayXAdapter so that every call has
a bounded timeout, gateway errors are translated to PayoutGatewayError
subclasses, and timing is logged.

Configuration (via settings):
- RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET: API credentials
- RAZORPAYX_ACCOUNT_NUMBER: Platform account payouts are debited from
- RAZORPAY_WEBHOOK_SECRET: Webhook signing secret
- PAYOUT_GATEWAY_TIMEOUT_SECONDS: Per-call timeout (default: 10)
- RAZORPAY_IFSC_LOOKUP_URL: IFSC directory used by bank account validation

Usage:
    from payouts.adapters import PayoutRequest, RazorpayXAdapter

    result = RazorpayXAdapter.create_payout(
        PayoutRequest(
            reference_id="restaurant_<uuid>_ORD-1_1717171717000",
            amount=80000,
            account_number="123456789012",
            ifsc_code="HDFC0000001",
            account_holder_name="Spice Route",
            contact_name="Spice Route",
            contact_type="vendor",
            narration="Restaurant payout ORD-1",
        )
    )
    if result.is_accepted:
        ...
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import razorpay
import requests
from django.conf import settings

from payouts.exceptions import (
    PayoutGatewayError,
    PayoutGatewayRequestError,
    PayoutGatewayTimeoutError,
    PayoutGatewayUnavailableError,
    SignatureMismatchError,
)
from payouts.state_machines import PayoutStatus

PAYOUTS_PATH = "/v1/payouts"
BANK_VALIDATION_PATH = "/v1/bank_accounts/validate"

# RazorpayX limits reference_id to 40 characters and narration to 30
GATEWAY_REFERENCE_MAX_LENGTH = 40
NARRATION_MAX_LENGTH = 30

# Gateway statuses that mean the payout is alive (or already done)
ACCEPTED_STATUSES = frozenset({"queued", "pending", "scheduled", "processing", "processed"})
REJECTED_STATUSES = frozenset({"failed", "cancelled", "rejected", "reversed"})

_STATUS_MAP = {
    "queued": PayoutStatus.QUEUED,
    "pending": PayoutStatus.QUEUED,
    "scheduled": PayoutStatus.QUEUED,
    "processing": PayoutStatus.PROCESSING,
    "processed": PayoutStatus.PROCESSED,
    "failed": PayoutStatus.FAILED,
    "rejected": PayoutStatus.FAILED,
    "reversed": PayoutStatus.FAILED,
    "cancelled": PayoutStatus.CANCELLED,
}

# Bank validation errors that fall back to the IFSC lookup
GATEWAY_REFUSALS = (
    PayoutGatewayRequestError,
    razorpay.errors.BadRequestError,
    razorpay.errors.ServerError,
    razorpay.errors.GatewayError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class PayoutRequest:
    """
    Parameters for a composite payout (contact + fund account + payout).

    Attributes:
        reference_id: Our record reference (PayoutRecord.reference_id)
        idempotency_key: Key that stays the same across retries of one
            recipient's payout for an order; defaults to reference_id
        amount: Amount in smallest currency unit (paise)
        contact_type: "vendor" for restaurants, "employee" for riders
        notes: Free-form key/value pairs echoed back in webhooks
    """

    reference_id: str
    amount: int
    account_number: str
    ifsc_code: str
    account_holder_name: str
    contact_name: str
    contact_type: str = "vendor"
    narration: str = ""
    currency: str = "INR"
    mode: str = "IMPS"
    purpose: str = "payout"
    notes: dict[str, str] = field(default_factory=dict)
    idempotency_key: str = ""

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.reference_id:
            raise ValueError("reference_id is required")
        if not self.account_number or not self.ifsc_code:
            raise ValueError("account_number and ifsc_code are required")

    @property
    def gateway_reference(self) -> str:
        return gateway_reference(self.reference_id)

    @property
    def idempotency_header(self) -> str:
        return gateway_reference(self.idempotency_key or self.reference_id)

    def to_payload(self, source_account_number: str) -> dict[str, Any]:
        return {
            "account_number": source_account_number,
            "amount": self.amount,
            "currency": self.currency,
            "mode": self.mode,
            "purpose": self.purpose,
            "fund_account": {
                "account_type": "bank_account",
                "bank_account": {
                    "name": self.account_holder_name,
                    "ifsc": self.ifsc_code,
                    "account_number": self.account_number,
                },
                "contact": {
                    "name": self.contact_name,
                    "type": self.contact_type,
                    "reference_id": self.gateway_reference,
                },
            },
            "queue_if_low_balance": True,
            "reference_id": self.gateway_reference,
            "narration": self.narration[:NARRATION_MAX_LENGTH],
            "notes": {**self.notes, "reference_id": self.reference_id},
        }


@dataclass
class PayoutResult:
    """
    Result of a payout create or fetch call.

    Attributes:
        id: Gateway payout ID (pout_xxx)
        status: Raw gateway status
        raw_response: Full gateway response dict
    """

    id: str
    status: str
    amount: int
    reference_id: str | None = None
    utr: str | None = None
    failure_reason: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def is_accepted(self) -> bool:
        return self.status in ACCEPTED_STATUSES

    @property
    def record_status(self) -> str:
        """Gateway status mapped onto PayoutStatus."""
        return map_gateway_status(self.status)

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> PayoutResult:
        status_details = response.get("status_details") or {}
        return cls(
            id=response["id"],
            status=str(response.get("status", "")).lower(),
            amount=int(response.get("amount") or 0),
            reference_id=response.get("reference_id"),
            utr=response.get("utr"),
            failure_reason=(
                response.get("failure_reason") or status_details.get("description")
            ),
            raw_response=response,
        )


@dataclass
class BankAccountValidation:
    """
    Outcome of a bank account check.

    Attributes:
        source: "gateway" when RazorpayX validated the account, "ifsc_lookup"
            when only the IFSC code could be checked
    """

    is_valid: bool
    source: str
    bank_name: str | None = None
    account_holder_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "source": self.source,
            "bank_name": self.bank_name,
            "account_holder_name": self.account_holder_name,
        }


def gateway_reference(reference_id: str) -> str:
    """Stable 40-character reference derived from our (longer) reference id."""
    digest = hashlib.sha256(reference_id.encode()).hexdigest()
    return digest[:GATEWAY_REFERENCE_MAX_LENGTH]


def map_gateway_status(gateway_status: str) -> str:
    return _STATUS_MAP.get(gateway_status, PayoutStatus.QUEUED)


# =============================================================================
# Adapter
# =============================================================================


class RazorpayXAdapter:
    """
    Adapter for RazorpayX payout operations.

    All methods are classmethods; a fresh SDK client is built per call, which
    keeps the adapter safe to use from Celery worker threads.
    """

    @staticmethod
    def _get_client() -> razorpay.Client:
        if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
            raise PayoutGatewayRequestError(
                "RazorpayX API credentials are not configured",
                error_code="PAYOUT_GATEWAY_NOT_CONFIGURED",
            )
        return razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )

    @staticmethod
    def _timeout() -> float:
        return getattr(settings, "PAYOUT_GATEWAY_TIMEOUT_SECONDS", 10)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def create_payout(cls, request: PayoutRequest) -> PayoutResult:
        """
        Create a payout to a bank account.

        The payout is created asynchronously on the gateway side: the response
        is normally "queued" or "processing" and the final outcome arrives by
        webhook.

        Raises:
            PayoutGatewayRequestError: Request refused (validation, auth)
            PayoutGatewayUnavailableError: Server error or network failure
            PayoutGatewayTimeoutError: No answer within the timeout
        """
        logger = cls.get_logger()
        log_context = {
            "operation": "create_payout",
            "reference_id": request.reference_id,
            "amount": request.amount,
            "mode": request.mode,
        }

        start_time = time.monotonic()
        logger.info("Starting payout gateway operation", extra=log_context)

        try:
            client = cls._get_client()
            response = client.post(
                PAYOUTS_PATH,
                request.to_payload(settings.RAZORPAYX_ACCOUNT_NUMBER),
                timeout=cls._timeout(),
                headers={"X-Payout-Idempotency": request.idempotency_header},
            )
        except PayoutGatewayError:
            raise
        except Exception as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            cls._handle_gateway_error(e, log_context, duration_ms)
            raise

        result = PayoutResult.from_response(response)
        logger.info(
            "Payout gateway operation completed",
            extra={
                **log_context,
                "payout_id": result.id,
                "gateway_status": result.status,
                "duration_ms": (time.monotonic() - start_time) * 1000,
            },
        )
        return result

    @classmethod
    def fetch_payout(cls, payout_id: str) -> PayoutResult:
        """Fetch the current state of a payout (used by reconciliation)."""
        logger = cls.get_logger()
        log_context = {"operation": "fetch_payout", "payout_id": payout_id}
        start_time = time.monotonic()

        try:
            client = cls._get_client()
            response = client.get(
                f"{PAYOUTS_PATH}/{payout_id}", {}, timeout=cls._timeout()
            )
        except PayoutGatewayError:
            raise
        except Exception as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            cls._handle_gateway_error(e, log_context, duration_ms)
            raise

        result = PayoutResult.from_response(response)
        logger.info(
            "Payout gateway operation completed",
            extra={
                **log_context,
                "gateway_status": result.status,
                "duration_ms": (time.monotonic() - start_time) * 1000,
            },
        )
        return result

    @classmethod
    def validate_bank_account(
        cls, account_number: str, ifsc_code: str, name: str = "Account Holder"
    ) -> BankAccountValidation:
        """
        Check a bank account with RazorpayX before it is saved.

        When the gateway refuses the check (not configured, bad request,
        server error) the IFSC code alone is looked up instead.

        Raises:
            PayoutGatewayUnavailableError: Network failure on the fallback lookup
            PayoutGatewayTimeoutError: No answer within the timeout
        """
        logger = cls.get_logger()
        log_context = {"operation": "validate_bank_account", "ifsc_code": ifsc_code}
        start_time = time.monotonic()

        try:
            client = cls._get_client()
            response = client.post(
                BANK_VALIDATION_PATH,
                {"account_number": account_number, "ifsc": ifsc_code, "name": name},
                timeout=cls._timeout(),
            )
        except GATEWAY_REFUSALS as e:
            logger.warning(
                "Gateway could not validate bank account, looking up IFSC",
                extra={**log_context, "gateway_error": str(e)},
            )
            return cls.lookup_ifsc(ifsc_code)
        except Exception as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            cls._handle_gateway_error(e, log_context, duration_ms)
            raise

        logger.info(
            "Bank account validated",
            extra={
                **log_context,
                "is_valid": bool(response.get("valid")),
                "duration_ms": (time.monotonic() - start_time) * 1000,
            },
        )
        return BankAccountValidation(
            is_valid=bool(response.get("valid")),
            source="gateway",
            bank_name=response.get("bank_name"),
            account_holder_name=response.get("name") or response.get("account_holder_name"),
        )

    @classmethod
    def lookup_ifsc(cls, ifsc_code: str) -> BankAccountValidation:
        """Look up an IFSC code in the public directory; unknown codes are invalid."""
        log_context = {"operation": "lookup_ifsc", "ifsc_code": ifsc_code}
        start_time = time.monotonic()
        url = f"{settings.RAZORPAY_IFSC_LOOKUP_URL.rstrip('/')}/{ifsc_code}"

        try:
            response = requests.get(url, timeout=cls._timeout())
        except requests.exceptions.RequestException as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            cls._handle_gateway_error(e, log_context, duration_ms)
            raise

        if response.status_code == 404:
            cls.get_logger().info("Unknown IFSC code", extra=log_context)
            return BankAccountValidation(is_valid=False, source="ifsc_lookup")

        if not response.ok:
            cls.get_logger().error(
                "IFSC lookup failed",
                extra={**log_context, "status_code": response.status_code},
            )
            raise PayoutGatewayUnavailableError(
                f"IFSC lookup returned HTTP {response.status_code}",
                details={"ifsc_code": ifsc_code},
            )

        data = response.json()
        return BankAccountValidation(
            is_valid=True,
            source="ifsc_lookup",
            bank_name=data.get("BANK"),
        )

    @classmethod
    def verify_webhook_signature(cls, payload: bytes, signature: str | None) -> None:
        """
        Verify X-Razorpay-Signature: hex HMAC-SHA256 of the raw body.

        Raises:
            SignatureMismatchError: Missing secret, missing header or mismatch
        """
        secret = settings.RAZORPAY_WEBHOOK_SECRET
        if not secret:
            cls.get_logger().error("RAZORPAY_WEBHOOK_SECRET is not configured")
            raise SignatureMismatchError(
                "Webhook secret not configured",
                error_code="WEBHOOK_SECRET_NOT_CONFIGURED",
            )
        if not signature:
            raise SignatureMismatchError("Missing X-Razorpay-Signature header")

        expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
        if not hmac.compare_digest(expected, signature):
            raise SignatureMismatchError("Invalid webhook signature")

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_gateway_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate SDK and transport exceptions to PayoutGatewayError subclasses.

        Always raises.
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, requests.exceptions.Timeout):
            logger.error("Payout gateway timed out", extra=log_context)
            raise PayoutGatewayTimeoutError(
                f"Payout gateway did not respond within {cls._timeout()}s",
            ) from error

        if isinstance(error, requests.exceptions.RequestException):
            logger.error(
                "Connection error to payout gateway", extra=log_context, exc_info=True
            )
            raise PayoutGatewayUnavailableError(
                "Could not connect to payout gateway",
                details={"error": str(error)},
            ) from error

        if isinstance(error, razorpay.errors.BadRequestError):
            logger.error(
                "Payout gateway rejected request",
                extra={**log_context, "gateway_error": str(error)},
            )
            raise PayoutGatewayRequestError(
                str(error) or "Payout gateway rejected the request",
                gateway_code="BAD_REQUEST_ERROR",
            ) from error

        if isinstance(error, (razorpay.errors.ServerError, razorpay.errors.GatewayError)):
            logger.error(
                "Payout gateway server error",
                extra={**log_context, "gateway_error": str(error)},
            )
            raise PayoutGatewayUnavailableError(
                str(error) or "Payout gateway server error",
                gateway_code=type(error).__name__,
            ) from error

        logger.error(
            "Unexpected payout gateway error", extra=log_context, exc_info=True
        )
        raise PayoutGatewayUnavailableError(
            f"Unexpected payout gateway error: {error}",
        ) from error
