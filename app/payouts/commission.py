"""
Commission split for completed orders.

Fixed rates: restaurant 80%, delivery rider 15%, platform 5%. The restaurant
and delivery shares are rounded half-up to the smallest currency unit; the
platform takes the remainder, so the three parts always add up to the total.

Example:
    >>> split(997)
    CommissionSplit(total_amount=997, restaurant_amount=798, delivery_amount=150, platform_amount=49)
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from payouts.exceptions import InvalidAmountError

RESTAURANT_RATE = Decimal("0.80")
DELIVERY_RATE = Decimal("0.15")
PLATFORM_RATE = Decimal("0.05")

COMMISSION_RATES = {
    "restaurant": RESTAURANT_RATE,
    "delivery": DELIVERY_RATE,
    "platform": PLATFORM_RATE,
}


@dataclass(frozen=True)
class CommissionSplit:
    total_amount: int
    restaurant_amount: int
    delivery_amount: int
    platform_amount: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_amount(amount) -> int:
    """
    Coerce an amount to a non-negative integer number of minor units.

    Integral floats and Decimals (``1000.0``) are accepted because JSON task
    payloads do not preserve the int/float distinction.

    Raises:
        InvalidAmountError: For booleans, non-numbers, NaN/inf, fractions or
            negative values
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidAmountError(
            f"Amount must be a number, got {type(amount).__name__}",
            details={"amount": repr(amount)},
        )

    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmountError("Amount must be finite", details={"amount": repr(amount)})
    if isinstance(amount, Decimal) and not amount.is_finite():
        raise InvalidAmountError("Amount must be finite", details={"amount": str(amount)})

    if amount != int(amount):
        raise InvalidAmountError(
            "Amount must be a whole number of minor currency units",
            details={"amount": str(amount)},
        )

    amount = int(amount)
    if amount < 0:
        raise InvalidAmountError(
            "Amount must not be negative", details={"amount": amount}
        )
    return amount


def split(total_amount) -> CommissionSplit:
    """
    Split ``total_amount`` into restaurant, delivery and platform shares.

    Args:
        total_amount: Gross order amount in the smallest currency unit

    Raises:
        InvalidAmountError: If the amount is negative or not a whole number
    """
    total = validate_amount(total_amount)
    restaurant_amount = _round_half_up(Decimal(total) * RESTAURANT_RATE)
    delivery_amount = _round_half_up(Decimal(total) * DELIVERY_RATE)
    return CommissionSplit(
        total_amount=total,
        restaurant_amount=restaurant_amount,
        delivery_amount=delivery_amount,
        platform_amount=total - restaurant_amount - delivery_amount,
    )
