"""
Membership pricing — pure, deterministic, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from pawpass.catalog._types import Product

if TYPE_CHECKING:
    from pawpass.config import Settings

_HUNDRED = Decimal(100)


@dataclass(frozen=True, slots=True)
class DiscountPolicy:
    """
    Premium discount and the currency's smallest unit.

    Raises ValueError on construction when percent is outside 0..100 or the
    minor unit is not positive.
    """

    percent: Decimal = Decimal("10")
    minor_unit: Decimal = Decimal("0.01")

    def __post_init__(self) -> None:
        percent = Decimal(str(self.percent))
        minor_unit = Decimal(str(self.minor_unit))
        if not Decimal(0) <= percent <= _HUNDRED:
            raise ValueError(f"Discount percent must be within 0..100, got {percent}")
        if minor_unit <= 0:
            raise ValueError(f"Minor unit must be positive, got {minor_unit}")
        object.__setattr__(self, "percent", percent)
        object.__setattr__(self, "minor_unit", minor_unit)

    @classmethod
    def from_settings(cls, settings: Settings) -> DiscountPolicy:
        return cls(settings.discount_percent, settings.currency_minor_unit)


def apply_membership_discount(
    price: Decimal,
    is_premium: bool,
    policy: DiscountPolicy = DiscountPolicy(),
) -> Decimal:
    """
    Price a member pays.

    Premium: `price * (100 - percent) / 100`, rounded half-up to the minor
    unit and never above `price`. Everyone else: `price` unchanged.

    Example:
        apply_membership_discount(Decimal("19.99"), True)   # Decimal("17.99")
        apply_membership_discount(Decimal("19.99"), False)  # Decimal("19.99")
    """
    if not is_premium:
        return price
    discounted = price * (_HUNDRED - policy.percent) / _HUNDRED
    return min(discounted.quantize(policy.minor_unit, rounding=ROUND_HALF_UP), price)


def unit_price(
    product: Product,
    is_premium: bool,
    policy: DiscountPolicy = DiscountPolicy(),
) -> Decimal | None:
    """Current price of one unit for this member. None when unpriced."""
    if product.price is None:
        return None
    return apply_membership_discount(product.price, is_premium, policy)


__all__ = ("DiscountPolicy", "apply_membership_discount", "unit_price")
