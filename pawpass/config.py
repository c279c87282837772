"""
Settings — pydantic-settings, overridable via PAWPASS_* environment variables.

Nothing in the package reads settings at import time. Hosts call
`get_settings()` once and hand the values to constructors.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAWPASS_",
        env_file=".env",
        extra="ignore",
    )

    # Commerce backend (WooCommerce REST)
    commerce_url: str = "https://petoclub.com.ar"
    commerce_api_version: str = "wc/v3"
    commerce_consumer_key: SecretStr = SecretStr("")
    commerce_consumer_secret: SecretStr = SecretStr("")
    commerce_timeout_seconds: float = Field(default=10.0, gt=0)

    # Membership pricing
    discount_percent: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    currency_minor_unit: Decimal = Decimal("0.01")

    # Membership lifecycle
    premium_days: int = Field(default=30, ge=1)
    expiry_sweep_concurrency: int = Field(default=5, ge=1)

    # Checkout
    default_payment_method: str = "mercadopago"
    default_payment_method_title: str = "MercadoPago"

    # Persistence
    database_url: str = "sqlite+aiosqlite:///pawpass.db"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ("Settings", "get_settings")
