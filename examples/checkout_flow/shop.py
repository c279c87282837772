"""In-process WooCommerce shop for the checkout example."""

import json

import httpx

PRODUCTS = {
    101: {"id": 101, "name": "Alimento balanceado 15kg", "price": "42000.00", "stock_status": "instock"},
    102: {"id": 102, "name": "Pipeta antipulgas", "price": "8999.99", "stock_status": "instock"},
}


class Shop:
    def __init__(self) -> None:
        self.orders: list[dict] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/wp-json/wc/v3/")

        if request.method == "POST" and path == "orders":
            body = json.loads(request.content)
            self.orders.append(body)
            return httpx.Response(201, json={"id": 5000 + len(self.orders), "status": "pending"})

        if path.startswith("products/"):
            product = PRODUCTS.get(int(path.removeprefix("products/")))
            if product is None:
                return httpx.Response(404, json={"code": "woocommerce_rest_product_invalid_id"})
            return httpx.Response(200, json=product)

        if path == "products":
            return httpx.Response(200, json=list(PRODUCTS.values()))

        return httpx.Response(404, json={"code": "rest_no_route"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)
