"""
Checkout Flow

A premium member checks out against a WooCommerce shop served by an
in-process httpx transport, with memberships kept in SQLite.

Structure:
    shop.py  — canned WooCommerce REST responses
    main.py  — membership, cart, order and payment outcome end to end

Run:
    uv run python -m examples.checkout_flow.main
"""
