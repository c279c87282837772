"""
Order types — addresses, immutable order snapshots, lifecycle states.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from kungfu import Option, Some, Nothing

from pawpass.errors import RejectedError, TransportError


# ═══════════════════════════════════════════════════════════════════════════════
# Address
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Address:
    first_name: str = ""
    last_name: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""

    BILLING_REQUIRED: ClassVar[tuple[str, ...]] = (
        "first_name",
        "last_name",
        "address_1",
        "city",
        "state",
        "postcode",
        "country",
        "email",
        "phone",
    )

    def missing_billing_fields(self) -> tuple[str, ...]:
        return tuple(
            name for name in self.BILLING_REQUIRED if not getattr(self, name).strip()
        )

    def to_payload(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ═══════════════════════════════════════════════════════════════════════════════
# Order Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderLine:
    """A cart line frozen with the verified unit price."""

    product_id: int
    quantity: int
    variation_id: int | None
    name: str
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class Order:
    """
    Immutable order snapshot taken from a cart at submit time.

    Note: later cart edits never reach an Order. `submission_key` goes out
    with the order so the backend can spot duplicates.
    """

    submission_key: str
    payment_method: str
    payment_method_title: str
    billing: Address
    shipping: Address
    line_items: tuple[OrderLine, ...]
    premium_pricing: bool
    customer_id: int | None = None
    set_paid: bool = False

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.line_items), Decimal(0))


@dataclass(frozen=True, slots=True)
class CreatedOrder:
    """Backend acknowledgement of a created order."""

    id: str
    status: str


@dataclass(frozen=True, slots=True)
class OrderSummary:
    """Past order as listed by the backend."""

    id: str
    status: str
    total: Decimal | None
    currency: str
    created_at: str | None
    line_count: int


# ═══════════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class OrderState(Enum):
    """
    Order lifecycle.

        DRAFT → SUBMITTED → PENDING → PAID
                          │         └→ FAILED
                          ├→ REJECTED
                          └→ TRANSPORT_ERROR
    """

    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING = "pending"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderState.PAID, OrderState.REJECTED)


class PaymentOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_provider_status(cls, status: str) -> Option[PaymentOutcome]:
        """
        Map a payment provider status to an outcome.

        Statuses still in flight (`pending`, `in_process`, ...) map to Nothing.
        """
        match status.strip().lower():
            case "approved":
                return Some(cls.SUCCESS)
            case "rejected" | "cancelled" | "refunded" | "charged_back":
                return Some(cls.FAILURE)
            case _:
                return Nothing()


# ═══════════════════════════════════════════════════════════════════════════════
# Submission Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SubmissionPending:
    """Order accepted by the backend, awaiting payment."""

    order_id: str
    order: Order

    @property
    def state(self) -> OrderState:
        return OrderState.PENDING


@dataclass(frozen=True, slots=True)
class SubmissionRejected:
    """
    Backend declined. Terminal.

    Note: `order` is None when pricing failed before a snapshot existed.
    """

    order: Order | None
    error: RejectedError

    @property
    def state(self) -> OrderState:
        return OrderState.REJECTED


@dataclass(frozen=True, slots=True)
class SubmissionTransportError:
    """Backend unreachable. Nothing is known to exist on the backend."""

    order: Order | None
    error: TransportError

    @property
    def state(self) -> OrderState:
        return OrderState.TRANSPORT_ERROR


type OrderSubmissionResult = SubmissionPending | SubmissionRejected | SubmissionTransportError


__all__ = (
    "Address",
    "OrderLine",
    "Order",
    "CreatedOrder",
    "OrderSummary",
    "OrderState",
    "PaymentOutcome",
    "SubmissionPending",
    "SubmissionRejected",
    "SubmissionTransportError",
    "OrderSubmissionResult",
)
