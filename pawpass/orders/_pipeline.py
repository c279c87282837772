"""
Order pipeline — cart + membership + catalog → backend order.

    pipeline = OrderPipeline(backend, resolver)

    match await pipeline.submit(cart, user_id, billing):
        case Ok(SubmissionPending(order_id=order_id)):
            ...  # hand the user to the payment provider
        case Ok(SubmissionRejected(error=err)) | Ok(SubmissionTransportError(error=err)):
            ...  # cart is untouched and may be submitted again
        case Error(err):
            ...  # validation, membership or in-flight submission

    # later, from the payment provider's notification
    await pipeline.on_payment_outcome(order_id, PaymentOutcome.SUCCESS)

One submission per cart at a time. The guard is taken before the first
await and held while the order is pending payment.
"""

from __future__ import annotations

import asyncio
import uuid
import weakref
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from combinators import batch, lift as L

from kungfu import Result, Ok, Error, Option, Some, Nothing

from pawpass.cart import Cart, CartLineItem
from pawpass.catalog._pricing import DiscountPolicy, unit_price
from pawpass.catalog._types import Product
from pawpass.commerce._backend import BackendError, CommerceBackend
from pawpass.errors import (
    CoreError,
    InvalidTransitionError,
    MembershipPersistenceError,
    NotFoundError,
    RejectedError,
    SubmissionInProgressError,
    TransportError,
    ValidationError,
)
from pawpass.membership import MembershipResolver
from pawpass.orders._types import (
    Address,
    Order,
    OrderLine,
    OrderState,
    OrderSubmissionResult,
    OrderSummary,
    PaymentOutcome,
    SubmissionPending,
    SubmissionRejected,
    SubmissionTransportError,
)
from pawpass.orders._validation import validate_checkout

if TYPE_CHECKING:
    from pawpass.config import Settings

logger = structlog.get_logger()

type DraftError = (
    ValidationError | NotFoundError | MembershipPersistenceError | TransportError | RejectedError
)
type SubmitError = (
    ValidationError | SubmissionInProgressError | NotFoundError | MembershipPersistenceError
)


@dataclass
class _TrackedOrder:
    """
    Mutable bookkeeping for one submission.

    Note: the cart is held weakly. A cart dropped by its owner is collected
    even while its order is pending.
    """

    key: str
    cart_ref: weakref.ref[Cart]
    order: Order
    state: OrderState
    order_id: str | None = None

    @property
    def cart(self) -> Cart | None:
        return self.cart_ref()


class OrderPipeline:
    def __init__(
        self,
        backend: CommerceBackend,
        resolver: MembershipResolver,
        *,
        policy: DiscountPolicy = DiscountPolicy(),
        payment_method: str = "mercadopago",
        payment_method_title: str = "MercadoPago",
        pricing_concurrency: int = 5,
        retained_orders: int = 1000,
    ) -> None:
        self._backend = backend
        self._resolver = resolver
        self._policy = policy
        self._payment_method = payment_method
        self._payment_method_title = payment_method_title
        self._pricing_concurrency = pricing_concurrency
        self._retained_orders = retained_orders

        self._guards: weakref.WeakKeyDictionary[Cart, str] = weakref.WeakKeyDictionary()
        self._orders: dict[str, _TrackedOrder] = {}
        self._by_order_id: dict[str, str] = {}
        self._finished: deque[str] = deque()
        self._tasks: set[asyncio.Task[OrderSubmissionResult]] = set()

    @classmethod
    def from_settings(
        cls, settings: Settings, backend: CommerceBackend, resolver: MembershipResolver
    ) -> OrderPipeline:
        return cls(
            backend,
            resolver,
            policy=DiscountPolicy.from_settings(settings),
            payment_method=settings.default_payment_method,
            payment_method_title=settings.default_payment_method_title,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Draft
    # ═══════════════════════════════════════════════════════════════════════════

    async def build_draft(
        self,
        cart: Cart,
        user_id: str,
        billing: Address,
        shipping: Address | None = None,
        payment_method: str | None = None,
        customer_id: int | None = None,
    ) -> Result[Order, DraftError]:
        """
        Validate, resolve membership and price every line from the catalog.

        Prices sent by a client are never trusted. Each product is fetched
        again and discounted according to the freshly resolved membership.
        """
        match validate_checkout(cart, billing, operation="build_draft"):
            case Error(err):
                return Error(err)
            case Ok(lines):
                pass

        return await self._draft(
            uuid.uuid4().hex, lines, user_id, billing, shipping, payment_method, customer_id
        )

    async def _draft(
        self,
        key: str,
        lines: tuple[CartLineItem, ...],
        user_id: str,
        billing: Address,
        shipping: Address | None,
        payment_method: str | None,
        customer_id: int | None,
    ) -> Result[Order, DraftError]:
        match await self._resolver.resolve(user_id):
            case Error(err):
                return Error(err)
            case Ok(resolution):
                premium = resolution.is_premium

        fetched = await batch(
            lines,
            handler=lambda line: L.call(self._fetch_product, line.product_id),
            concurrency=self._pricing_concurrency,
        )
        match fetched:
            case Error(err):
                return Error(err)
            case Ok(products):
                pass

        order_lines: list[OrderLine] = []
        for line, product in zip(lines, products):
            match self._price_line(line, product, premium):
                case Error(err):
                    return Error(err)
                case Ok(order_line):
                    order_lines.append(order_line)

        method = payment_method or self._payment_method
        return Ok(
            Order(
                submission_key=key,
                payment_method=method,
                payment_method_title=(
                    self._payment_method_title if method == self._payment_method else method
                ),
                billing=billing,
                shipping=shipping if shipping is not None else billing,
                line_items=tuple(order_lines),
                premium_pricing=premium,
                customer_id=customer_id,
            )
        )

    async def _fetch_product(
        self, product_id: int
    ) -> Result[Product, NotFoundError | TransportError | RejectedError]:
        try:
            return await self._backend.get_product(product_id)
        except Exception as e:
            return Error(_raised("get_product", e))

    def _price_line(
        self, line: CartLineItem, product: Product, premium: bool
    ) -> Result[OrderLine, RejectedError]:
        price = unit_price(product, premium, self._policy)
        if price is None:
            return Error(
                RejectedError(
                    operation="build_draft",
                    message=f"Product {product.id} has no price and cannot be sold",
                )
            )
        return Ok(
            OrderLine(
                product_id=line.product_id,
                quantity=line.quantity,
                variation_id=line.variation_id,
                name=product.name,
                unit_price=price,
            )
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Submit
    # ═══════════════════════════════════════════════════════════════════════════

    async def submit(
        self,
        cart: Cart,
        user_id: str,
        billing: Address,
        shipping: Address | None = None,
        payment_method: str | None = None,
        customer_id: int | None = None,
    ) -> Result[OrderSubmissionResult, SubmitError]:
        """
        Turn the cart into a backend order awaiting payment.

        Note: once the backend call starts it runs to completion even if the
        caller is cancelled. Its outcome is still recorded and `state()`
        reports it.
        """
        held = self._guards.get(cart)
        if held is not None:
            tracked = self._orders.get(held)
            return Error(
                SubmissionInProgressError(
                    operation="submit",
                    message="Cart already has a submission in progress",
                    order_id=tracked.order_id if tracked is not None else None,
                )
            )

        match validate_checkout(cart, billing):
            case Error(err):
                return Error(err)
            case Ok(lines):
                pass

        key = uuid.uuid4().hex
        self._guards[cart] = key
        handed_off = False
        try:
            drafted = await self._draft(
                key, lines, user_id, billing, shipping, payment_method, customer_id
            )
            match drafted:
                case Error(TransportError() as err):
                    logger.warning("order_pricing_unreachable", user_id=user_id, error=err.message)
                    return Ok(SubmissionTransportError(order=None, error=err))
                case Error(RejectedError() as err):
                    logger.info("order_pricing_rejected", user_id=user_id, error=err.message)
                    return Ok(SubmissionRejected(order=None, error=err))
                case Error(err):
                    return Error(err)
                case Ok(order):
                    pass

            tracked = _TrackedOrder(
                key=key, cart_ref=weakref.ref(cart), order=order, state=OrderState.SUBMITTED
            )
            self._orders[key] = tracked
            logger.info(
                "order_submitted",
                user_id=user_id,
                submission_key=key,
                lines=len(order.line_items),
                total=str(order.total),
                premium_pricing=order.premium_pricing,
            )

            task = asyncio.ensure_future(self._create(tracked))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            handed_off = True
        finally:
            if not handed_off:
                self._release(cart, key)

        return Ok(await asyncio.shield(task))

    async def _create(self, tracked: _TrackedOrder) -> OrderSubmissionResult:
        try:
            created = await self._backend.create_order(tracked.order)
        except Exception as e:
            created = Error(_raised("create_order", e))

        match created:
            case Ok(acknowledged):
                tracked.state = OrderState.PENDING
                tracked.order_id = acknowledged.id
                self._by_order_id[acknowledged.id] = tracked.key
                logger.info(
                    "order_pending",
                    order_id=acknowledged.id,
                    submission_key=tracked.key,
                    backend_status=acknowledged.status,
                )
                return SubmissionPending(order_id=acknowledged.id, order=tracked.order)
            case Error(TransportError() as err):
                tracked.state = OrderState.TRANSPORT_ERROR
                self._finish(tracked)
                logger.warning(
                    "order_transport_error", submission_key=tracked.key, error=err.message
                )
                return SubmissionTransportError(order=tracked.order, error=err)
            case Error(err):
                rejected = _as_rejection(err)
                tracked.state = OrderState.REJECTED
                self._finish(tracked)
                logger.info("order_rejected", submission_key=tracked.key, status=rejected.status)
                return SubmissionRejected(order=tracked.order, error=rejected)

    def _release(self, cart: Cart | None, key: str) -> None:
        if cart is not None and self._guards.get(cart) == key:
            del self._guards[cart]

    def _finish(self, tracked: _TrackedOrder) -> None:
        """Free the cart and keep the order in the bounded history of finished ones."""
        self._release(tracked.cart, tracked.key)
        self._finished.append(tracked.key)
        while len(self._finished) > self._retained_orders:
            evicted = self._orders.pop(self._finished.popleft(), None)
            if evicted is not None and evicted.order_id is not None:
                self._by_order_id.pop(evicted.order_id, None)

    async def join(self) -> None:
        """Wait for backend calls still running for abandoned submissions."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    # ═══════════════════════════════════════════════════════════════════════════
    # Payment outcome
    # ═══════════════════════════════════════════════════════════════════════════

    async def on_payment_outcome(
        self, order_id: str, outcome: PaymentOutcome
    ) -> Result[OrderState, NotFoundError | InvalidTransitionError]:
        """
        Apply the payment provider's verdict to a pending order.

        SUCCESS clears the cart. FAILURE keeps it and frees it for a new
        submission. A repeated notification for the state already reached
        is accepted as is.

        Note: SUCCESS empties the whole cart, including lines added after the
        order snapshot was taken. Those lines were never part of the order.
        """
        key = self._by_order_id.get(order_id)
        if key is None:
            return Error(
                NotFoundError(
                    operation="on_payment_outcome",
                    message=f"Order {order_id} is not tracked",
                    entity="order",
                    entity_id=order_id,
                )
            )
        tracked = self._orders[key]

        match (tracked.state, outcome):
            case (OrderState.PENDING, PaymentOutcome.SUCCESS):
                tracked.state = OrderState.PAID
                cart = tracked.cart
                if cart is not None:
                    cart.clear()
            case (OrderState.PENDING, PaymentOutcome.FAILURE):
                tracked.state = OrderState.FAILED
            case (OrderState.PAID, PaymentOutcome.SUCCESS) | (
                OrderState.FAILED,
                PaymentOutcome.FAILURE,
            ):
                logger.info("payment_outcome_redelivered", order_id=order_id, state=tracked.state.value)
                return Ok(tracked.state)
            case _:
                return Error(
                    InvalidTransitionError(
                        operation="on_payment_outcome",
                        message=f"Order {order_id} is {tracked.state.value}, cannot apply {outcome.value}",
                        order_id=order_id,
                        state=tracked.state.value,
                    )
                )

        self._finish(tracked)
        logger.info("payment_outcome_recorded", order_id=order_id, state=tracked.state.value)
        return Ok(tracked.state)

    # ═══════════════════════════════════════════════════════════════════════════
    # Queries
    # ═══════════════════════════════════════════════════════════════════════════

    def state(self, order_id: str) -> Option[OrderState]:
        """State by backend order id, or by submission key before one exists."""
        key = self._by_order_id.get(order_id, order_id)
        tracked = self._orders.get(key)
        if tracked is None:
            return Nothing()
        return Some(tracked.state)

    def in_progress(self, cart: Cart) -> bool:
        return cart in self._guards

    async def history(
        self, customer_email: str, per_page: int = 20
    ) -> Result[list[OrderSummary], BackendError]:
        return await self._backend.list_orders(customer_email, per_page)


def _raised(operation: str, e: Exception) -> TransportError:
    return TransportError(operation=operation, message=f"Backend call raised: {e}", cause=e)


def _as_rejection(err: CoreError) -> RejectedError:
    """Any non-transport failure of order creation is a backend refusal."""
    if isinstance(err, RejectedError):
        return err
    return RejectedError(
        operation="create_order",
        message=err.message,
        status=404 if isinstance(err, NotFoundError) else None,
    )


__all__ = ("OrderPipeline",)
