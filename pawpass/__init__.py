"""
pawpass — membership lifecycle and checkout core for a pet-services app.

    from pawpass import membership as M
    from pawpass import catalog as C
    from pawpass import orders as O
    from pawpass.cart import Cart

Three pieces:
- membership: resolve FREE / PREMIUM, create and downgrade as needed
- catalog: products from the shop, member pricing
- orders: cart → backend order → payment outcome

Every fallible call returns a kungfu Result. Errors live in `pawpass.errors`.
"""

from pawpass import errors
from pawpass import catalog
from pawpass import commerce
from pawpass import orders
from pawpass import membership
from pawpass import cart
from pawpass import push

from pawpass._types import Result, Ok, Error, Option, Some, Nothing

__version__ = "0.1.0"

__all__ = (
    # Namespaces
    "errors",
    "catalog",
    "commerce",
    "orders",
    "membership",
    "cart",
    "push",
    # Re-exports
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "__version__",
)
