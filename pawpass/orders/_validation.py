"""
Checkout validation — runs before any backend call.
"""

from __future__ import annotations

from kungfu import Result, Ok, Error

from pawpass.cart import Cart, CartLineItem
from pawpass.errors import EmptyCartError, InvalidBillingError, ValidationError
from pawpass.orders._types import Address


def validate_checkout(
    cart: Cart, billing: Address, operation: str = "submit"
) -> Result[tuple[CartLineItem, ...], ValidationError]:
    """Snapshot of the cart lines, or the first reason checkout cannot start."""
    lines = cart.lines
    if not lines:
        return Error(EmptyCartError(operation=operation, message="Cart has no items"))

    missing = billing.missing_billing_fields()
    if missing:
        return Error(
            InvalidBillingError(
                operation=operation,
                message=f"Billing address is missing: {', '.join(missing)}",
                missing=missing,
            )
        )
    return Ok(lines)


__all__ = ("validate_checkout",)
