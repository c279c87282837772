"""Shared fixtures."""

import pytest

from pawpass.cart import Cart
from pawpass.membership import MembershipResolver, MemoryMembershipStore
from pawpass.orders import Address, OrderPipeline
from tests.fakes import NOW, FakeBackend, FixedClock, product


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at NOW."""
    return FixedClock(NOW)


@pytest.fixture
def store() -> MemoryMembershipStore:
    return MemoryMembershipStore()


@pytest.fixture
def resolver(store: MemoryMembershipStore, clock: FixedClock) -> MembershipResolver:
    return MembershipResolver(store, clock=clock)


@pytest.fixture
def backend() -> FakeBackend:
    """Shop with two priced products and one without a price."""
    return FakeBackend(
        [
            product(1, "100.00", "Alimento balanceado 15kg"),
            product(2, "19.99", "Pipeta antipulgas"),
            product(3, None, "Consulta a domicilio"),
        ]
    )


@pytest.fixture
def billing() -> Address:
    return Address(
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


@pytest.fixture
def cart() -> Cart:
    return Cart()


@pytest.fixture
def pipeline(backend: FakeBackend, resolver: MembershipResolver) -> OrderPipeline:
    return OrderPipeline(backend, resolver)
