"""Tests for the WooCommerce backend over a mocked HTTP transport."""

import json
from collections.abc import Callable
from decimal import Decimal

import httpx
import pytest
from kungfu import Error

from pawpass.commerce import SUBMISSION_KEY_META, WooCommerceBackend, order_payload
from pawpass.errors import NotFoundError, RejectedError, TransportError
from pawpass.orders import Address, Order, OrderLine

PRODUCT_JSON = {
    "id": 42,
    "name": "Collar reflectivo",
    "price": "1500.00",
    "regular_price": "1800.00",
    "sale_price": "1500.00",
    "on_sale": True,
    "stock_status": "instock",
    "stock_quantity": 8,
    "categories": [{"id": 5, "name": "Accesorios", "slug": "accesorios"}],
    "attributes": [{"name": "Talle", "options": ["S", "M"]}],
    "images": [{"src": "https://shop.test/collar.jpg"}],
    "permalink": "https://shop.test/collar",
}

type Handler = Callable[[httpx.Request], httpx.Response]


def make_backend(handler: Handler) -> WooCommerceBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WooCommerceBackend("https://shop.test/", "ck_test", "cs_test", client=client)


def make_order(payment_method: str = "mercadopago", set_paid: bool = True) -> Order:
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
    return Order(
        submission_key="key-123",
        payment_method=payment_method,
        payment_method_title="MercadoPago",
        billing=billing,
        shipping=billing,
        line_items=(
            OrderLine(42, 2, None, "Collar reflectivo", Decimal("1350.00")),
            OrderLine(7, 1, 70, "Correa", Decimal("900.00")),
        ),
        premium_pricing=True,
        customer_id=15,
        set_paid=set_paid,
    )


class TestWooCommerceCatalog:
    """Product and category endpoints."""

    async def test_get_product(self) -> None:
        """Products are parsed and requests carry credentials as query params."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=PRODUCT_JSON)

        found = (await make_backend(handler).get_product(42)).unwrap()

        assert found.price == Decimal("1500.00")
        assert found.regular_price == Decimal("1800.00")
        assert found.categories[0].slug == "accesorios"
        assert found.attributes[0].options == ("S", "M")
        assert found.images == ("https://shop.test/collar.jpg",)
        request = seen[0]
        assert request.url.path == "/wp-json/wc/v3/products/42"
        assert request.url.params["consumer_key"] == "ck_test"
        assert request.url.params["consumer_secret"] == "cs_test"

    async def test_list_products_params(self) -> None:
        """Pagination, category and search go out as query params."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[PRODUCT_JSON, {**PRODUCT_JSON, "id": 43, "price": ""}])

        items = (
            await make_backend(handler).list_products(page=3, per_page=12, category_id=5, search="collar")
        ).unwrap()

        assert [p.id for p in items] == [42, 43]
        assert items[1].price is None
        params = seen[0].url.params
        assert (params["page"], params["per_page"], params["category"], params["search"]) == (
            "3",
            "12",
            "5",
            "collar",
        )

    async def test_list_categories(self) -> None:
        """Categories are requested 100 at a time."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": 5, "name": "Accesorios", "slug": "accesorios", "count": 3}])

        categories = (await make_backend(handler).list_categories()).unwrap()

        assert categories[0].count == 3
        assert seen[0].url.path == "/wp-json/wc/v3/products/categories"
        assert seen[0].url.params["per_page"] == "100"


class TestWooCommerceErrors:
    """HTTP outcomes map onto the error taxonomy."""

    async def test_not_found(self) -> None:
        """404 is NotFoundError with the entity id."""
        backend = make_backend(lambda request: httpx.Response(404, json={"code": "woocommerce_rest_product_invalid_id"}))

        result = await backend.get_product(42)

        match result:
            case Error(NotFoundError() as err):
                assert (err.entity, err.entity_id) == ("product", 42)
            case _:
                pytest.fail(f"expected NotFoundError, got {result}")

    async def test_missing_orders_route_is_rejection(self) -> None:
        """A 404 when creating an order is a RejectedError, not a lookup miss."""
        backend = make_backend(lambda request: httpx.Response(404, json={"code": "rest_no_route"}))

        err = (await backend.create_order(make_order())).unwrap_err()

        assert isinstance(err, RejectedError)
        assert err.status == 404

    async def test_client_error_is_rejection(self) -> None:
        """Other 4xx answers are RejectedError with the status."""
        backend = make_backend(lambda request: httpx.Response(400, json={"code": "rest_invalid_param"}))

        err = (await backend.create_order(make_order())).unwrap_err()

        assert isinstance(err, RejectedError)
        assert err.status == 400

    async def test_server_error_is_transport(self) -> None:
        """5xx answers are TransportError."""
        backend = make_backend(lambda request: httpx.Response(503))

        err = (await backend.list_products()).unwrap_err()

        assert isinstance(err, TransportError)
        assert err.retryable

    async def test_connection_failure_is_transport(self) -> None:
        """Network errors never escape as exceptions."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        err = (await make_backend(handler).get_product(42)).unwrap_err()

        assert isinstance(err, TransportError)
        assert isinstance(err.cause, httpx.ConnectError)

    async def test_malformed_body_is_transport(self) -> None:
        """A 200 without usable JSON is a TransportError."""
        backend = make_backend(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        assert isinstance((await backend.get_product(42)).unwrap_err(), TransportError)


class TestWooCommerceOrders:
    """Order creation and history."""

    async def test_create_order(self) -> None:
        """The created order id and status come back."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 981, "status": "pending"})

        created = (await make_backend(handler).create_order(make_order())).unwrap()

        assert (created.id, created.status) == ("981", "pending")
        assert bodies[0]["customer_id"] == 15

    def test_mercadopago_is_never_marked_paid(self) -> None:
        """Payment happens later at the provider."""
        assert order_payload(make_order("mercadopago", set_paid=True))["set_paid"] is False
        assert order_payload(make_order("bacs", set_paid=True))["set_paid"] is True

    def test_payload_shape(self) -> None:
        """Lines carry verified totals, shipping is flat, the submission key is attached."""
        payload = order_payload(make_order())

        assert payload["line_items"][0] == {
            "product_id": 42,
            "quantity": 2,
            "subtotal": "2700.00",
            "total": "2700.00",
        }
        assert payload["line_items"][1]["variation_id"] == 70
        assert payload["shipping_lines"][0]["method_id"] == "flat_rate"
        assert payload["shipping_lines"][0]["total"] == "0.00"
        assert {"key": SUBMISSION_KEY_META, "value": "key-123"} in payload["meta_data"]
        assert "email" not in payload["shipping"]
        assert payload["billing"]["email"] == "lucia@example.com"

    async def test_list_orders(self) -> None:
        """History is filtered by customer."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {
                        "id": 981,
                        "status": "completed",
                        "total": "3600.00",
                        "currency": "ARS",
                        "date_created": "2025-02-20T10:00:00",
                        "line_items": [{}, {}],
                    }
                ],
            )

        orders = (await make_backend(handler).list_orders("lucia@example.com")).unwrap()

        assert orders[0].total == Decimal("3600.00")
        assert orders[0].line_count == 2
        assert seen[0].url.params["customer"] == "lucia@example.com"
        assert seen[0].url.params["per_page"] == "20"
