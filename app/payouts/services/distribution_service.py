"""
Distribution service: splits a completed order's payment and pays everyone.

Flow for a new order (under the per-order Redis lock):
1. Split the total 80/15/5 (payouts.commission)
2. Create the OrderDistribution row in DISTRIBUTING
3. Transfer the restaurant share (gateway payout, balance fallback on error)
4. Transfer the delivery share to the rider, or hand it to the platform when
   there is no rider or the rider cannot be paid
5. Credit the platform commission (plus any absorbed delivery share)
6. Move to FULLY_DISTRIBUTED, or PARTIALLY_DISTRIBUTED while the platform
   holds the delivery share

Calling distribute_payment again for the same order is safe: a fully
distributed order is a no-op, a partially distributed one only pays the late
rider, and an interrupted one resumes the steps that left no trace.

Usage:
    from payouts.services import DistributionService

    result = DistributionService.distribute_payment(
        order_data={"order_id": "ORD-1001"},
        total_amount=100000,
        restaurant_id=restaurant.id,
        delivery_rider_id=rider.id,
    )
    result.to_dict()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import DatabaseError, transaction
from django.utils import timezone

from core.services import BaseService
from payouts.adapters import PayoutRequest, RazorpayXAdapter
from payouts.commission import CommissionSplit, split
from payouts.exceptions import (
    DistributionNotFoundError,
    PayoutGatewayError,
    PayoutGatewayRequestError,
    PayoutValidationError,
    PersistenceError,
)
from payouts.locks import order_lock
from payouts.models import OrderDistribution, PayoutRecord
from payouts.state_machines import DistributionStatus, PayoutMethod, PayoutStatus
from recipients.exceptions import (
    BankDetailsDecryptionError,
    MissingBankDetailsError,
    RecipientNotFoundError,
)
from recipients.models import RecipientType
from recipients.services import RecipientAccountService, RecipientLedger

if TYPE_CHECKING:
    from typing import Any

    from payouts.adapters import PayoutResult
    from payouts.locks import DistributedLock
    from recipients.models import RecipientAccount


# Entry "type" reported in results for each recipient type
ENTRY_TYPES = {
    RecipientType.RESTAURANT: "restaurant",
    RecipientType.DELIVERY_BOY: "delivery",
    RecipientType.ADMIN: "platform",
}

CONTACT_TYPES = {
    RecipientType.RESTAURANT: "vendor",
    RecipientType.DELIVERY_BOY: "employee",
}

NARRATION_LABELS = {
    RecipientType.RESTAURANT: "Restaurant payout",
    RecipientType.DELIVERY_BOY: "Delivery payout",
}


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class DistributionEntry:
    """
    Outcome of one step of a distribution.

    ``success`` means the recipient was credited (directly after an accepted
    payout, or through the balance fallback).
    """

    type: str
    amount: int
    success: bool
    recipient: str | None = None
    method: str | None = None
    status: str | None = None
    payout_id: str | None = None
    reference_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in self.__dict__.items() if value is not None}


@dataclass
class DistributionResult:
    success: bool
    order_id: str
    status: str
    message: str = ""
    split: CommissionSplit | None = None
    distributions: list[DistributionEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "order_id": self.order_id,
            "status": self.status,
            "message": self.message,
            "split": self.split.to_dict() if self.split else None,
            "distributions": [entry.to_dict() for entry in self.distributions],
        }


def build_reference_id(recipient_type: str, recipient_id: Any, order_id: str) -> str:
    timestamp_ms = int(timezone.now().timestamp() * 1000)
    return f"{recipient_type}_{recipient_id}_{order_id}_{timestamp_ms}"


def build_idempotency_key(recipient_type: str, recipient_id: Any, order_id: str) -> str:
    """Same for every attempt to pay one recipient for one order."""
    return f"{recipient_type}_{recipient_id}_{order_id}"


# =============================================================================
# Distribution Service
# =============================================================================


class DistributionService(BaseService):
    """
    Orchestrates commission split, payouts and balance updates for orders.

    Error Handling:
        - Per-recipient problems (missing account, no bank details) produce a
          failed entry and never stop the other recipients
        - Gateway errors never escape: the recipient is credited through the
          balance fallback
        - PersistenceError, LockAcquisitionError and
          PlatformAccountNotConfiguredError propagate to the caller

    The gateway adapter can be replaced with set_payout_gateway() for tests.
    """

    _payout_gateway: type | None = None

    @classmethod
    def get_payout_gateway(cls) -> type:
        return cls._payout_gateway or RazorpayXAdapter

    @classmethod
    def set_payout_gateway(cls, gateway: type | None) -> None:
        cls._payout_gateway = gateway

    # =========================================================================
    # Entry Points
    # =========================================================================

    @classmethod
    def distribute_payment(
        cls,
        order_data: dict,
        total_amount: int,
        restaurant_id: Any,
        delivery_rider_id: Any = None,
    ) -> DistributionResult:
        """
        Distribute a completed order's payment.

        Args:
            order_data: Order snapshot; must contain "order_id"
            total_amount: Gross amount in smallest currency unit
            restaurant_id: Restaurant account id
            delivery_rider_id: Rider account id, or None if not yet assigned

        Returns:
            DistributionResult (success unless an exception propagates)

        Raises:
            InvalidAmountError: total_amount negative or not whole
            PayoutValidationError: Missing order id or malformed account ids
            LockAcquisitionError: Another worker holds the order lock
            PersistenceError: A database write failed
            PlatformAccountNotConfiguredError: No platform account
        """
        order_data = cls._validate_order_data(order_data)
        commission = split(total_amount)
        restaurant_uuid = cls._parse_account_id(restaurant_id, "restaurant_id")
        rider_uuid = (
            cls._parse_account_id(delivery_rider_id, "delivery_rider_id")
            if delivery_rider_id
            else None
        )
        order_id = order_data["order_id"]

        cls.get_logger().info(
            "Starting payment distribution",
            extra={
                "order_id": order_id,
                "total_amount": commission.total_amount,
                "restaurant_id": str(restaurant_uuid),
                "delivery_rider_id": str(rider_uuid) if rider_uuid else None,
            },
        )

        with order_lock(order_id) as lock:
            try:
                return cls._distribute_locked(
                    lock, order_data, commission, restaurant_uuid, rider_uuid
                )
            except DatabaseError as e:
                cls.get_logger().error(
                    "Database error during distribution",
                    extra={"order_id": order_id},
                    exc_info=True,
                )
                raise PersistenceError(
                    f"Failed to persist distribution for order {order_id}",
                    details={"order_id": order_id, "error": str(e)},
                ) from e

    @classmethod
    def assign_delivery_rider(cls, order_id: str, rider_id: Any) -> DistributionResult:
        """
        Pay the delivery share of an already distributed order to a rider.

        Raises:
            DistributionNotFoundError: No distribution exists for the order
        """
        distribution = OrderDistribution.objects.filter(order_id=str(order_id)).first()
        if distribution is None:
            raise DistributionNotFoundError(
                f"No distribution recorded for order {order_id}",
                details={"order_id": str(order_id)},
            )
        return cls.distribute_payment(
            distribution.order_data,
            distribution.total_amount,
            distribution.restaurant_id,
            rider_id,
        )

    # =========================================================================
    # Single Recipient Operations
    # =========================================================================

    @classmethod
    def transfer_to_recipient(
        cls,
        recipient_type: str,
        recipient_id: Any,
        amount: int,
        order_data: dict,
    ) -> DistributionEntry:
        """
        Pay one recipient: gateway payout, or balance fallback on gateway error.

        Always writes one PayoutRecord when the recipient exists and has bank
        details, in the same transaction as the balance credit.

        Raises:
            PersistenceError: Record or credit could not be written
        """
        logger = cls.get_logger()
        order_id = str(order_data["order_id"])
        entry_type = ENTRY_TYPES[recipient_type]
        log_context = {
            "order_id": order_id,
            "recipient_type": recipient_type,
            "recipient_id": str(recipient_id),
            "amount": amount,
        }

        try:
            account = RecipientAccountService.get_account(recipient_type, recipient_id)
            bank_details = account.bank_details
            if bank_details is None:
                raise MissingBankDetailsError(
                    f"{account.name} has no bank details on file",
                    details={"recipient_id": str(recipient_id)},
                )
            if not bank_details["account_number"] or not bank_details["ifsc_code"]:
                raise MissingBankDetailsError(
                    f"{account.name} has incomplete bank details on file",
                    details={
                        "recipient_id": str(recipient_id),
                        "has_ifsc_code": bool(bank_details["ifsc_code"]),
                    },
                )
        except (
            RecipientNotFoundError,
            MissingBankDetailsError,
            BankDetailsDecryptionError,
        ) as e:
            logger.warning(
                "Recipient cannot be paid",
                extra={**log_context, "error_code": e.error_code},
            )
            return DistributionEntry(
                type=entry_type,
                amount=amount,
                success=False,
                recipient=str(recipient_id),
                error=e.message,
            )

        if amount == 0:
            logger.info("Skipping zero-amount transfer", extra=log_context)
            return DistributionEntry(
                type=entry_type,
                amount=0,
                success=True,
                recipient=account.name,
            )

        reference_id = build_reference_id(recipient_type, account.pk, order_id)
        request = PayoutRequest(
            reference_id=reference_id,
            idempotency_key=build_idempotency_key(recipient_type, account.pk, order_id),
            amount=amount,
            account_number=bank_details["account_number"],
            ifsc_code=bank_details["ifsc_code"],
            account_holder_name=bank_details["account_holder_name"] or account.name,
            contact_name=account.name,
            contact_type=CONTACT_TYPES[recipient_type],
            narration=f"{NARRATION_LABELS[recipient_type]} {order_id}",
            notes={"order_id": order_id, "recipient_type": recipient_type},
        )

        # Gateway call stays outside the transaction
        gateway_result: PayoutResult | None = None
        gateway_error: PayoutGatewayError | None = None
        try:
            gateway_result = cls.get_payout_gateway().create_payout(request)
            if not gateway_result.is_accepted:
                gateway_error = PayoutGatewayRequestError(
                    f"Payout {gateway_result.status}: "
                    f"{gateway_result.failure_reason or 'no reason given'}",
                    gateway_code=gateway_result.status,
                )
        except PayoutGatewayError as e:
            gateway_error = e

        record_fields = {
            "reference_id": reference_id,
            "recipient_type": recipient_type,
            "recipient_id": account.pk,
            "recipient_name": account.name,
            "order_id": order_id,
            "order_data": order_data,
            "amount": amount,
            "currency": request.currency,
            "mode": request.mode,
            "purpose": request.purpose,
            "narration": request.narration[:30],
            "bank_details": {
                "account_number": account.bank_account_number,
                "ifsc_code": account.bank_ifsc_code,
                "account_holder_name": account.bank_account_holder_name,
                "bank_name": account.bank_name,
            },
            "external_payout_id": gateway_result.id if gateway_result else None,
            "gateway_status": gateway_result.status if gateway_result else "",
            "gateway_response": gateway_result.raw_response if gateway_result else {},
        }

        if gateway_error is None:
            status = gateway_result.record_status
            record_fields.update(
                method=PayoutMethod.RAZORPAY_PAYOUT,
                status=status,
                processed_at=timezone.now() if status == PayoutStatus.PROCESSED else None,
            )
        else:
            logger.warning(
                "Payout gateway failed, crediting balance instead",
                extra={
                    **log_context,
                    "reference_id": reference_id,
                    "error_code": gateway_error.error_code,
                    "is_retryable": gateway_error.is_retryable,
                    "error": gateway_error.message,
                },
            )
            if gateway_result is None:
                record_fields["gateway_response"] = {
                    "error": gateway_error.message,
                    "error_code": gateway_error.error_code,
                }
            record_fields.update(
                method=PayoutMethod.BALANCE_UPDATE_FALLBACK,
                status=PayoutStatus.FAILED,
                failed_at=timezone.now(),
                failure_reason=gateway_error.message,
            )

        try:
            with transaction.atomic():
                record = PayoutRecord.objects.create(**record_fields)
                RecipientLedger.credit(account, amount)
        except RecipientNotFoundError as e:
            logger.error(
                "Recipient disappeared before credit",
                extra={**log_context, "reference_id": reference_id},
            )
            return DistributionEntry(
                type=entry_type,
                amount=amount,
                success=False,
                recipient=account.name,
                error=e.message,
            )
        except DatabaseError as e:
            logger.error(
                "Failed to persist payout record",
                extra={**log_context, "reference_id": reference_id},
                exc_info=True,
            )
            raise PersistenceError(
                f"Failed to persist payout {reference_id}",
                details={"reference_id": reference_id, "error": str(e)},
            ) from e

        logger.info(
            "Recipient paid",
            extra={
                **log_context,
                "reference_id": reference_id,
                "method": record.method,
                "status": record.status,
            },
        )
        return cls._entry_from_record(record)

    @classmethod
    def credit_platform(cls, amount: int, order_data: dict) -> DistributionEntry:
        """
        Credit the platform account directly (no gateway, no PayoutRecord).

        Raises:
            PlatformAccountNotConfiguredError: PLATFORM_ACCOUNT_ID unusable
        """
        platform = RecipientAccountService.get_platform_account()
        RecipientLedger.credit(platform, amount)
        cls.get_logger().info(
            "Platform credited",
            extra={"order_id": order_data.get("order_id"), "amount": amount},
        )
        return DistributionEntry(type="platform", amount=amount, success=True)

    # =========================================================================
    # Internal Steps
    # =========================================================================

    @classmethod
    def _distribute_locked(
        cls,
        lock: DistributedLock,
        order_data: dict,
        commission: CommissionSplit,
        restaurant_id: uuid.UUID,
        rider_id: uuid.UUID | None,
    ) -> DistributionResult:
        order_id = order_data["order_id"]
        distribution = OrderDistribution.objects.filter(order_id=order_id).first()

        if distribution is None:
            distribution = OrderDistribution.objects.create(
                order_id=order_id,
                order_data=order_data,
                restaurant_id=restaurant_id,
                delivery_rider_id=rider_id,
                total_amount=commission.total_amount,
                restaurant_amount=commission.restaurant_amount,
                delivery_amount=commission.delivery_amount,
                platform_amount=commission.platform_amount,
            )
            return cls._run_distribution(lock, distribution)

        if distribution.total_amount != commission.total_amount:
            cls.get_logger().warning(
                "Distribution called again with a different total; using recorded split",
                extra={
                    "order_id": order_id,
                    "recorded_total": distribution.total_amount,
                    "requested_total": commission.total_amount,
                },
            )
            distribution.set_meta("last_requested_total", commission.total_amount)

        if distribution.status == DistributionStatus.FULLY_DISTRIBUTED:
            cls.get_logger().info(
                "Order already distributed", extra={"order_id": order_id}
            )
            return cls._result(distribution, "Order already distributed")

        if distribution.status == DistributionStatus.PARTIALLY_DISTRIBUTED:
            if rider_id is None:
                return cls._result(
                    distribution, "Waiting for a delivery rider to be assigned"
                )
            return cls._pay_late_rider(distribution, rider_id)

        # DISTRIBUTING: a previous run stopped part way
        cls.get_logger().warning(
            "Resuming interrupted distribution", extra={"order_id": order_id}
        )
        late_rider_id = None
        if rider_id is not None and distribution.delivery_rider_id is None:
            if distribution.platform_credited:
                # Delivery share already went to the platform
                late_rider_id = rider_id
            else:
                distribution.delivery_rider_id = rider_id
                distribution.save(update_fields=["delivery_rider_id", "updated_at"])

        result = cls._run_distribution(lock, distribution)
        if (
            late_rider_id is None
            or distribution.status != DistributionStatus.PARTIALLY_DISTRIBUTED
        ):
            return result

        lock.extend()
        late_result = cls._pay_late_rider(distribution, late_rider_id)
        late_result.distributions = result.distributions + late_result.distributions
        return late_result

    @classmethod
    def _run_distribution(
        cls, lock: DistributedLock, distribution: OrderDistribution
    ) -> DistributionResult:
        logger = cls.get_logger()
        order_data = distribution.order_data
        entries = []

        entries.append(
            cls._transfer_once(
                RecipientType.RESTAURANT,
                distribution.restaurant_id,
                distribution.restaurant_amount,
                order_data,
            )
        )
        if not entries[-1].success:
            logger.error(
                "Restaurant could not be paid",
                extra={
                    "order_id": distribution.order_id,
                    "restaurant_id": str(distribution.restaurant_id),
                    "amount": distribution.restaurant_amount,
                },
            )

        if distribution.platform_credited:
            # Delivery decision was made with the platform credit
            absorbed = distribution.absorbed_delivery_amount
        else:
            absorbed = 0
            if distribution.delivery_rider_id:
                lock.extend()
                rider_entry = cls._transfer_once(
                    RecipientType.DELIVERY_BOY,
                    distribution.delivery_rider_id,
                    distribution.delivery_amount,
                    order_data,
                )
                entries.append(rider_entry)
                if not rider_entry.success:
                    absorbed = distribution.delivery_amount
            else:
                absorbed = distribution.delivery_amount

            if absorbed:
                logger.info(
                    "Delivery share reallocated to platform",
                    extra={"order_id": distribution.order_id, "amount": absorbed},
                )

            platform_total = distribution.platform_amount + absorbed
            with transaction.atomic():
                entries.append(cls.credit_platform(platform_total, order_data))
                distribution.platform_credited_amount = platform_total
                distribution.absorbed_delivery_amount = absorbed
                distribution.save(
                    update_fields=[
                        "platform_credited_amount",
                        "absorbed_delivery_amount",
                        "updated_at",
                    ]
                )

        if absorbed:
            distribution.mark_partially_distributed()
            message = "Delivery share held by platform until a rider is paid"
        else:
            distribution.mark_fully_distributed()
            message = "Payment distributed"
        distribution.save(update_fields=["status", "updated_at"])

        logger.info(
            "Payment distribution finished",
            extra={"order_id": distribution.order_id, "status": distribution.status},
        )
        return cls._result(distribution, message, entries)

    @classmethod
    def _pay_late_rider(
        cls, distribution: OrderDistribution, rider_id: uuid.UUID
    ) -> DistributionResult:
        """Pay the parked delivery share to a rider and take it back from the platform."""
        logger = cls.get_logger()
        rider_entry = cls._transfer_once(
            RecipientType.DELIVERY_BOY,
            rider_id,
            distribution.delivery_amount,
            distribution.order_data,
        )
        if not rider_entry.success:
            return cls._result(
                distribution,
                "Delivery rider could not be paid; delivery share stays with platform",
                [rider_entry],
            )

        with transaction.atomic():
            distribution = OrderDistribution.objects.select_for_update().get(
                pk=distribution.pk
            )
            absorbed = distribution.absorbed_delivery_amount
            platform = RecipientAccountService.get_platform_account()
            reclaimed = RecipientLedger.reclaim(platform, absorbed)

            if reclaimed:
                distribution.platform_credited_amount -= absorbed
            else:
                distribution.platform_reclaim_shortfall += absorbed
                logger.error(
                    "Platform balance short when reclaiming delivery share",
                    extra={"order_id": distribution.order_id, "amount": absorbed},
                )
            distribution.absorbed_delivery_amount = 0
            distribution.delivery_rider_id = rider_id
            distribution.mark_fully_distributed()
            distribution.save()

        reclaim_entry = DistributionEntry(
            type="platform_reclaim",
            amount=absorbed,
            success=reclaimed,
            error=None if reclaimed else "Platform balance too low to reclaim",
        )
        logger.info(
            "Late delivery rider paid",
            extra={"order_id": distribution.order_id, "rider_id": str(rider_id)},
        )
        return cls._result(
            distribution, "Delivery rider paid", [rider_entry, reclaim_entry]
        )

    @classmethod
    def _transfer_once(
        cls,
        recipient_type: str,
        recipient_id: Any,
        amount: int,
        order_data: dict,
    ) -> DistributionEntry:
        """transfer_to_recipient unless this recipient already has a record for the order."""
        existing = PayoutRecord.objects.filter(
            recipient_type=recipient_type,
            recipient_id=recipient_id,
            order_id=order_data["order_id"],
        ).first()
        if existing is not None:
            cls.get_logger().info(
                "Recipient already paid for order, skipping",
                extra={
                    "order_id": order_data["order_id"],
                    "recipient_type": recipient_type,
                    "reference_id": existing.reference_id,
                },
            )
            return cls._entry_from_record(existing)
        return cls.transfer_to_recipient(recipient_type, recipient_id, amount, order_data)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _entry_from_record(record: PayoutRecord) -> DistributionEntry:
        return DistributionEntry(
            type=ENTRY_TYPES[record.recipient_type],
            amount=record.amount,
            success=True,
            recipient=record.recipient_name,
            method=record.method,
            status=record.status,
            payout_id=record.external_payout_id,
            reference_id=record.reference_id,
        )

    @staticmethod
    def _result(
        distribution: OrderDistribution,
        message: str,
        entries: list[DistributionEntry] | None = None,
    ) -> DistributionResult:
        return DistributionResult(
            success=True,
            order_id=distribution.order_id,
            status=distribution.status,
            message=message,
            split=CommissionSplit(
                total_amount=distribution.total_amount,
                restaurant_amount=distribution.restaurant_amount,
                delivery_amount=distribution.delivery_amount,
                platform_amount=distribution.platform_amount,
            ),
            distributions=entries or [],
        )

    @staticmethod
    def _validate_order_data(order_data: Any) -> dict:
        if not isinstance(order_data, dict):
            raise PayoutValidationError("order_data must be a mapping")
        order_id = order_data.get("order_id")
        if order_id is None or not str(order_id).strip():
            raise PayoutValidationError(
                "order_data.order_id is required", details={"field": "order_id"}
            )
        return {**order_data, "order_id": str(order_id).strip()}

    @staticmethod
    def _parse_account_id(value: Any, field_name: str) -> uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except (TypeError, ValueError) as e:
            raise PayoutValidationError(
                f"{field_name} is not a valid account id",
                details={"field": field_name, "value": str(value)},
            ) from e
