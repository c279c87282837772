"""
Orders — checkout from cart to backend order to payment outcome.

    from pawpass import orders as O

    pipeline = O.OrderPipeline(backend, resolver)
    result = await pipeline.submit(cart, user_id, O.Address(...))

    match O.PaymentOutcome.from_provider_status("approved"):
        case Some(outcome):
            await pipeline.on_payment_outcome(order_id, outcome)
        case Nothing():
            pass  # still in flight, wait for the next notification
"""

from pawpass.orders._types import (
    Address,
    OrderLine,
    Order,
    CreatedOrder,
    OrderSummary,
    OrderState,
    PaymentOutcome,
    SubmissionPending,
    SubmissionRejected,
    SubmissionTransportError,
    OrderSubmissionResult,
)
from pawpass.orders._validation import validate_checkout
from pawpass.orders._pipeline import OrderPipeline

__all__ = (
    # Types
    "Address",
    "OrderLine",
    "Order",
    "CreatedOrder",
    "OrderSummary",
    "OrderState",
    "PaymentOutcome",
    # Submission
    "SubmissionPending",
    "SubmissionRejected",
    "SubmissionTransportError",
    "OrderSubmissionResult",
    "validate_checkout",
    # Pipeline
    "OrderPipeline",
)
