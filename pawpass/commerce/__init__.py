"""
Commerce — the shop backend that owns products and orders.

    from pawpass import commerce

    backend: commerce.CommerceBackend = commerce.WooCommerceBackend(url, key, secret)
"""

from pawpass.commerce._backend import CommerceBackend, BackendError, FetchError
from pawpass.commerce._woocommerce import (
    WooCommerceBackend,
    order_payload,
    SUBMISSION_KEY_META,
)

__all__ = (
    "CommerceBackend",
    "BackendError",
    "FetchError",
    "WooCommerceBackend",
    "order_payload",
    "SUBMISSION_KEY_META",
)
