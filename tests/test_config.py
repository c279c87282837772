"""Tests for settings."""

from decimal import Decimal

import pytest
import structlog
from pydantic import ValidationError

from pawpass.catalog import DiscountPolicy
from pawpass.commerce import WooCommerceBackend
from pawpass.config import Settings, get_settings
from pawpass.logging import configure_logging


class TestSettings:
    """Settings defaults and environment overrides."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PAWPASS_DISCOUNT_PERCENT", "PAWPASS_PREMIUM_DAYS", "PAWPASS_COMMERCE_URL"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self) -> None:
        """Ten percent off, thirty premium days, MercadoPago checkout."""
        settings = Settings(_env_file=None)

        assert settings.discount_percent == Decimal("10")
        assert settings.currency_minor_unit == Decimal("0.01")
        assert settings.premium_days == 30
        assert settings.default_payment_method == "mercadopago"
        assert settings.commerce_api_version == "wc/v3"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """PAWPASS_* variables win over defaults."""
        monkeypatch.setenv("PAWPASS_DISCOUNT_PERCENT", "15")
        monkeypatch.setenv("PAWPASS_PREMIUM_DAYS", "365")

        settings = Settings(_env_file=None)

        assert settings.discount_percent == Decimal("15")
        assert settings.premium_days == 365

    def test_out_of_range_discount(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Discounts above 100 percent are refused."""
        monkeypatch.setenv("PAWPASS_DISCOUNT_PERCENT", "150")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_secrets_are_masked(self) -> None:
        """Credentials never show up in repr."""
        settings = Settings(_env_file=None, commerce_consumer_secret="cs_live_123")

        assert "cs_live_123" not in repr(settings)
        assert settings.commerce_consumer_secret.get_secret_value() == "cs_live_123"

    def test_discount_policy_from_settings(self) -> None:
        """Pricing policy follows configuration."""
        settings = Settings(_env_file=None, discount_percent=Decimal("20"))

        policy = DiscountPolicy.from_settings(settings)

        assert policy == DiscountPolicy(Decimal("20"), Decimal("0.01"))

    async def test_backend_from_settings(self) -> None:
        """Backend base URL is built from the shop URL and API version."""
        settings = Settings(_env_file=None, commerce_url="https://shop.example/")

        async with WooCommerceBackend.from_settings(settings) as backend:
            assert backend._base == "https://shop.example/wp-json/wc/v3"

    def test_get_settings_is_cached(self) -> None:
        """One Settings instance per process."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestConfigureLogging:
    """structlog setup for host applications."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_output(self) -> None:
        """JSON mode ends the chain with the JSON renderer."""
        configure_logging("DEBUG", json=True)

        processors = structlog.get_config()["processors"]
        assert structlog.is_configured()
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_output(self) -> None:
        """Console rendering is the default."""
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
