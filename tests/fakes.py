"""In-memory stand-ins for the shop backend and a failing membership store."""

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from kungfu import Result, Ok, Error

from pawpass.catalog import Category, Product
from pawpass.errors import (
    ConflictError,
    CoreError,
    NotFoundError,
    StoreUnavailableError,
)
from pawpass.membership import (
    MembershipPatch,
    MembershipRecord,
    MembershipType,
    MemoryMembershipStore,
    new_record,
)
from pawpass.orders import CreatedOrder, Order, OrderSummary

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def product(product_id: int, price: str | None = "100.00", name: str | None = None) -> Product:
    return Product(
        id=product_id,
        name=name or f"Product {product_id}",
        price=Decimal(price) if price is not None else None,
        regular_price=Decimal(price) if price is not None else None,
    )


def _down(operation: str) -> StoreUnavailableError:
    return StoreUnavailableError(operation=operation, message="store is down")


class FlakyMembershipStore(MemoryMembershipStore):
    """Memory store whose operations can be switched to fail."""

    def __init__(
        self,
        records: list[MembershipRecord] | None = None,
        fail_on: set[str] | None = None,
        fail_ids: set[str] | None = None,
    ) -> None:
        super().__init__(records)
        self.fail_on = fail_on or set()
        self.fail_ids = fail_ids or set()
        self.writes = 0

    async def find_active_by_user(
        self, user_id: str
    ) -> Result[MembershipRecord | None, StoreUnavailableError]:
        if "find" in self.fail_on:
            return Error(_down("find_active_by_user"))
        return await super().find_active_by_user(user_id)

    async def insert(
        self, record: MembershipRecord
    ) -> Result[MembershipRecord, StoreUnavailableError | ConflictError]:
        if "insert" in self.fail_on:
            return Error(_down("insert"))
        self.writes += 1
        return await super().insert(record)

    async def update_by_id(
        self, record_id: str, patch: MembershipPatch
    ) -> Result[MembershipRecord, CoreError]:
        if "update" in self.fail_on or record_id in self.fail_ids:
            return Error(_down("update_by_id"))
        self.writes += 1
        return await super().update_by_id(record_id, patch)

    async def list_expired(
        self, now: datetime
    ) -> Result[list[MembershipRecord], StoreUnavailableError]:
        if "list" in self.fail_on:
            return Error(_down("list_expired"))
        return await super().list_expired(now)


class LateWriterStore(MemoryMembershipStore):
    """
    Another resolution creates the record right after our first read.

    The first lookup answers "nothing there" and then lets a concurrent
    writer insert, so our own insert hits the uniqueness constraint.
    """

    def __init__(self, now: datetime) -> None:
        super().__init__()
        self._now = now
        self.competitor: MembershipRecord | None = None

    async def find_active_by_user(
        self, user_id: str
    ) -> Result[MembershipRecord | None, StoreUnavailableError]:
        if self.competitor is None:
            self.competitor = new_record(user_id, MembershipType.FREE, self._now)
            await super().insert(self.competitor)
            return Ok(None)
        return await super().find_active_by_user(user_id)


class FakeBackend:
    """CommerceBackend over dicts. Order creation can be held open with `gate`."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self.products = {p.id: p for p in products or ()}
        self.categories = [Category(1, "Perros", "perros", 12), Category(2, "Gatos", "gatos", 7)]
        self.orders: list[Order] = []
        self.create_results: list[Result[CreatedOrder, CoreError]] = []
        self.product_errors: dict[int, CoreError] = {}
        self.product_raises: dict[int, Exception] = {}
        self.summaries: dict[str, list[OrderSummary]] = {}
        self.gate: asyncio.Event | None = None
        self.create_started = asyncio.Event()
        self.product_calls = 0

    async def list_products(
        self,
        page: int = 1,
        per_page: int = 10,
        category_id: int | None = None,
        search: str | None = None,
    ) -> Result[list[Product], CoreError]:
        items = sorted(self.products.values(), key=lambda p: p.id)
        if category_id is not None:
            items = [p for p in items if any(c.id == category_id for c in p.categories)]
        if search:
            items = [p for p in items if search.lower() in p.name.lower()]
        start = (page - 1) * per_page
        return Ok(items[start : start + per_page])

    async def get_product(self, product_id: int) -> Result[Product, CoreError]:
        self.product_calls += 1
        if product_id in self.product_raises:
            raise self.product_raises[product_id]
        if product_id in self.product_errors:
            return Error(self.product_errors[product_id])
        found = self.products.get(product_id)
        if found is None:
            return Error(
                NotFoundError(
                    operation="get_product",
                    message=f"product {product_id} not found",
                    entity="product",
                    entity_id=product_id,
                )
            )
        return Ok(found)

    async def list_categories(self) -> Result[list[Category], CoreError]:
        return Ok(list(self.categories))

    async def create_order(self, order: Order) -> Result[CreatedOrder, CoreError]:
        self.orders.append(order)
        self.create_started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.create_results:
            return self.create_results.pop(0)
        return Ok(CreatedOrder(id=str(1000 + len(self.orders)), status="pending"))

    async def get_order(self, order_id: str) -> Result[OrderSummary, CoreError]:
        for summaries in self.summaries.values():
            for summary in summaries:
                if summary.id == order_id:
                    return Ok(summary)
        return Error(
            NotFoundError(
                operation="get_order",
                message=f"order {order_id} not found",
                entity="order",
                entity_id=order_id,
            )
        )

    async def list_orders(
        self, customer_email: str, per_page: int = 20
    ) -> Result[list[OrderSummary], CoreError]:
        return Ok(self.summaries.get(customer_email, [])[:per_page])
