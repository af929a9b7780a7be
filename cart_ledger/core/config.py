"""Environment-driven configuration for the cart ledger."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from cart_ledger.core.exceptions import ConfigurationException

DEFAULT_CART_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CART_NAME = "default"
DEFAULT_KEY_PREFIX = "cart."


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationException(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationException(f"{name} must be positive, got {value}")
    return value


@dataclass(slots=True)
class Settings:
    redis_url: str | None = None
    cart_ttl_seconds: int = DEFAULT_CART_TTL_SECONDS
    default_cart_name: str = DEFAULT_CART_NAME
    key_prefix: str = DEFAULT_KEY_PREFIX
    log_level: str = "INFO"

    def cart_key(self, name: str) -> str:
        """Session store key for the named cart."""
        return f"{self.key_prefix}{name}"


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    redis_url = os.getenv("REDIS_URL") or None
    default_name = (os.getenv("CART_DEFAULT_NAME") or DEFAULT_CART_NAME).strip()
    if not default_name:
        default_name = DEFAULT_CART_NAME

    return Settings(
        redis_url=redis_url,
        cart_ttl_seconds=_int_from_env("CART_TTL_SECONDS", DEFAULT_CART_TTL_SECONDS),
        default_cart_name=default_name,
        key_prefix=os.getenv("CART_KEY_PREFIX", DEFAULT_KEY_PREFIX),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
