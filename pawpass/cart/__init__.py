"""
Cart — the user's local basket.

    from pawpass.cart import Cart

    cart = Cart()
    cart.add_item(42, quantity=2)
    cart.total(lambda line: prices[line.product_id])
"""

from pawpass.cart._model import Cart, CartLineItem, LineKey

__all__ = ("Cart", "CartLineItem", "LineKey")
