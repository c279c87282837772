"""Tests for membership pricing."""

from decimal import Decimal

import pytest

from pawpass.catalog import DiscountPolicy, apply_membership_discount, parse_price, unit_price
from tests.fakes import product


class TestApplyMembershipDiscount:
    """Premium discount with half-up rounding to the minor unit."""

    @pytest.mark.parametrize(
        ("price", "expected"),
        [
            ("100.00", "90.00"),
            ("19.99", "17.99"),
            ("0.05", "0.05"),
            ("1250.50", "1125.45"),
            ("0.00", "0.00"),
        ],
    )
    def test_premium_gets_ten_percent_off(self, price: str, expected: str) -> None:
        """Default policy takes 10% and rounds half up to cents."""
        assert apply_membership_discount(Decimal(price), True) == Decimal(expected)

    def test_non_premium_pays_list_price(self) -> None:
        """Non-members get the input back unchanged."""
        assert apply_membership_discount(Decimal("19.99"), False) == Decimal("19.99")

    def test_deterministic(self) -> None:
        """Same input, same output."""
        results = {apply_membership_discount(Decimal("33.33"), True) for _ in range(5)}
        assert results == {Decimal("30.00")}

    def test_custom_policy(self) -> None:
        """Percent and minor unit come from the policy."""
        policy = DiscountPolicy(percent=Decimal("15"), minor_unit=Decimal("1"))
        assert apply_membership_discount(Decimal("19.99"), True, policy) == Decimal("17")

    def test_full_discount(self) -> None:
        """100% brings the price to zero."""
        policy = DiscountPolicy(percent=Decimal("100"))
        assert apply_membership_discount(Decimal("42.10"), True, policy) == Decimal("0.00")

    @pytest.mark.parametrize("percent", ["0", "1", "10", "100"])
    @pytest.mark.parametrize("price", ["0.009", "1.005", "19.999", "0.01", "19.99", "0"])
    def test_premium_never_pays_more(self, price: str, percent: str) -> None:
        """Rounding up to the minor unit never lifts the member price above list."""
        policy = DiscountPolicy(percent=Decimal(percent))
        list_price = apply_membership_discount(Decimal(price), False, policy)

        assert apply_membership_discount(Decimal(price), True, policy) <= list_price
        assert list_price == Decimal(price)

    def test_sub_cent_price_is_capped(self) -> None:
        """A price finer than the minor unit is not rounded up past itself."""
        assert apply_membership_discount(Decimal("0.009"), True) == Decimal("0.009")
        assert apply_membership_discount(
            Decimal("1.005"), True, DiscountPolicy(percent=Decimal("0"))
        ) == Decimal("1.005")


class TestDiscountPolicy:
    """Policy validation happens at construction."""

    @pytest.mark.parametrize("percent", [Decimal("-1"), Decimal("100.01"), 150])
    def test_rejects_out_of_range_percent(self, percent: Decimal) -> None:
        """Percent outside 0..100 is a configuration error."""
        with pytest.raises(ValueError):
            DiscountPolicy(percent=percent)

    def test_rejects_non_positive_minor_unit(self) -> None:
        """The minor unit must be positive."""
        with pytest.raises(ValueError):
            DiscountPolicy(minor_unit=Decimal("0"))

    def test_accepts_ints(self) -> None:
        """Integers are normalized to Decimal."""
        assert DiscountPolicy(percent=20).percent == Decimal("20")


class TestUnitPrice:
    """Per-product member price."""

    def test_priced_product(self) -> None:
        """Premium discount applies to the current price."""
        assert unit_price(product(1, "19.99"), True) == Decimal("17.99")

    def test_unpriced_product(self) -> None:
        """No price, no unit price."""
        assert unit_price(product(1, None), True) is None


class TestParsePrice:
    """Backend price strings."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1250.50", Decimal("1250.50")), ("", None), (None, None), ("n/a", None), (15, Decimal("15"))],
    )
    def test_parse(self, raw: object, expected: Decimal | None) -> None:
        """Blank and garbage become None."""
        assert parse_price(raw) == expected  # type: ignore[arg-type]
