"""
Checkout Flow Example

Run: uv run python -m examples.checkout_flow.main
"""

import asyncio

import httpx
from kungfu import Ok, Error

from pawpass.cart import Cart
from pawpass.commerce import WooCommerceBackend
from pawpass.logging import configure_logging
from pawpass.membership import MembershipResolver, SQLAlchemyMembershipStore, create_database
from pawpass.orders import Address, OrderPipeline, PaymentOutcome, SubmissionPending

from examples.checkout_flow.shop import Shop


def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


async def main() -> None:
    configure_logging("INFO")
    banner("Checkout Flow")

    session_factory, engine = await create_database()
    shop = Shop()
    client = httpx.AsyncClient(transport=shop.transport())
    backend = WooCommerceBackend("https://shop.example", "ck_demo", "cs_demo", client=client)
    resolver = MembershipResolver(SQLAlchemyMembershipStore(session_factory))
    pipeline = OrderPipeline(backend, resolver)

    try:
        # 1. Membership
        print("1. Activate premium:")
        match await resolver.activate_premium("user-42"):
            case Ok(record):
                print(f"   {record.type} until {record.end_date:%Y-%m-%d}\n")
            case Error(e):
                print(f"   Error: {e}\n")
                return

        # 2. Cart
        print("2. Fill cart:")
        cart = Cart()
        cart.add_item(101, 1)
        cart.add_item(102, 2)
        print(f"   {len(cart)} lines, {cart.count} units\n")

        # 3. Submit (twice at once, one order)
        print("3. Submit twice concurrently:")
        billing = Address(
            first_name="Lucía",
            last_name="Gómez",
            address_1="Av. Corrientes 1234",
            city="Buenos Aires",
            state="C",
            postcode="1043",
            country="AR",
            email="lucia@example.com",
            phone="1155550000",
        )
        results = await asyncio.gather(
            pipeline.submit(cart, "user-42", billing),
            pipeline.submit(cart, "user-42", billing),
        )
        order_id = None
        for result in results:
            match result:
                case Ok(SubmissionPending(order_id=created, order=order)):
                    order_id = created
                    print(f"   Order {created}: total {order.total} (premium={order.premium_pricing})")
                case Ok(other):
                    print(f"   {other.state.value}: {other.error}")
                case Error(e):
                    print(f"   Refused: {e}")
        print(f"   Orders on the shop: {len(shop.orders)}\n")

        # 4. Payment
        if order_id is not None:
            print("4. Payment approved:")
            match PaymentOutcome.from_provider_status("approved"):
                case Ok(outcome):
                    state = (await pipeline.on_payment_outcome(order_id, outcome)).unwrap()
                    print(f"   Order {order_id} is {state.value}, cart empty: {cart.is_empty}")
                case Error(_):
                    print("   Still in flight")

    finally:
        await client.aclose()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
