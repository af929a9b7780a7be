"""Session stores that hold cart snapshots between operations."""
from __future__ import annotations

import copy
import json
import time
from typing import Any, Protocol, runtime_checkable

import redis
from redis.exceptions import RedisError

from cart_ledger.core.config import DEFAULT_CART_TTL_SECONDS, Settings
from cart_ledger.logging_config import logger


@runtime_checkable
class SessionStore(Protocol):
    """
    Key/value contract the ledger persists through.

    ``get`` returns None when the key is absent (never raises for absence).
    ``put`` and ``forget`` report persistence failures as False.
    """

    def get(self, key: str) -> Any:
        ...

    def put(self, key: str, value: Any) -> bool:
        ...

    def forget(self, key: str) -> bool:
        ...


class MemorySessionStore:
    """Process-local store with optional TTL. Not shared between processes."""

    def __init__(self, ttl_seconds: int | None = None):
        self._ttl_seconds = ttl_seconds
        self._values: dict[str, Any] = {}
        self._last_access: dict[str, float] = {}

    def _cleanup_expired(self) -> None:
        if not self._ttl_seconds:
            return
        now = time.time()
        expired = [
            key
            for key, last_access in self._last_access.items()
            if now - last_access > self._ttl_seconds
        ]
        for key in expired:
            self._values.pop(key, None)
            self._last_access.pop(key, None)

    def get(self, key: str) -> Any:
        self._cleanup_expired()
        if key not in self._values:
            return None
        self._last_access[key] = time.time()
        return copy.deepcopy(self._values[key])

    def put(self, key: str, value: Any) -> bool:
        self._cleanup_expired()
        self._values[key] = copy.deepcopy(value)
        self._last_access[key] = time.time()
        return True

    def forget(self, key: str) -> bool:
        self._values.pop(key, None)
        self._last_access.pop(key, None)
        return True

    def __contains__(self, key: str) -> bool:
        self._cleanup_expired()
        return key in self._values


class RedisSessionStore:
    """JSON values in Redis, refreshed to ``ttl_seconds`` on every write."""

    def __init__(self, client: Any, ttl_seconds: int = DEFAULT_CART_TTL_SECONDS):
        self._client = client
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = DEFAULT_CART_TTL_SECONDS) -> RedisSessionStore:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, ttl_seconds=ttl_seconds)

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False

    def get(self, key: str) -> Any:
        """Get value from Redis.

        Args:
            key: Store key

        Returns:
            Decoded value, or None when absent, unreadable or Redis is down
        """
        try:
            raw = self._client.get(key)
        except RedisError as exc:
            logger.warning("Redis read failed for %s: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable session value under %s", key)
            return None

    def put(self, key: str, value: Any) -> bool:
        """Serialize ``value`` to JSON and store it with the TTL.

        Returns:
            True if Redis accepted the write
        """
        try:
            serialized = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.error("Session value under %s is not serializable: %s", key, exc)
            return False
        try:
            return bool(self._client.setex(key, self._ttl_seconds, serialized))
        except RedisError as exc:
            logger.warning("Redis write failed for %s: %s", key, exc)
            return False

    def forget(self, key: str) -> bool:
        try:
            self._client.delete(key)
            return True
        except RedisError as exc:
            logger.warning("Redis delete failed for %s: %s", key, exc)
            return False


def build_session_store(settings: Settings) -> SessionStore:
    """Redis when configured and reachable, otherwise the in-memory store."""
    if not settings.redis_url:
        logger.warning("REDIS_URL is not set; cart uses in-memory session store")
        return MemorySessionStore(ttl_seconds=settings.cart_ttl_seconds)

    store = RedisSessionStore.from_url(settings.redis_url, ttl_seconds=settings.cart_ttl_seconds)
    if not store.ping():
        logger.warning("Redis is unreachable; cart uses in-memory session store")
        return MemorySessionStore(ttl_seconds=settings.cart_ttl_seconds)

    logger.info("Redis session store enabled")
    return store


__all__ = ["MemorySessionStore", "RedisSessionStore", "SessionStore", "build_session_store"]
