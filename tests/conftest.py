"""Shared pytest fixtures for cart ledger tests."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cart_ledger.core import cart_storage
from cart_ledger.core.config import Settings
from cart_ledger.integrations.session_store import MemorySessionStore
from cart_ledger.services.cart_events import CartEvent, CartEventNotifier
from cart_ledger.services.cart_ledger import CartLedger


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    setex_calls: list[tuple[str, int]] = field(default_factory=list)
    fail_writes: bool = False
    fail_reads: bool = False
    reachable: bool = True

    def ping(self) -> bool:
        if not self.reachable:
            raise RedisConnectionError("connection refused")
        return True

    def get(self, key: str):
        if self.fail_reads:
            raise RedisConnectionError("read failed")
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.fail_writes:
            raise RedisConnectionError("write failed")
        self.data[key] = value
        self.expiry[key] = ttl
        self.setex_calls.append((key, ttl))
        return True

    def delete(self, key: str) -> int:
        if self.fail_writes:
            raise RedisConnectionError("delete failed")
        existed = 1 if key in self.data else 0
        self.data.pop(key, None)
        self.expiry.pop(key, None)
        return existed


class RejectingStore(MemorySessionStore):
    """Memory store whose writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.accept_writes = True

    def put(self, key: str, value: Any) -> bool:
        if not self.accept_writes:
            return False
        return super().put(key, value)

    def forget(self, key: str) -> bool:
        if not self.accept_writes:
            return False
        return super().forget(key)


@dataclass
class EventRecorder:
    events: list[CartEvent] = field(default_factory=list)

    def __call__(self, event: CartEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [event.name for event in self.events]


@pytest.fixture
def fake_redis() -> FakeRedisClient:
    return FakeRedisClient()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def rejecting_store() -> RejectingStore:
    return RejectingStore()


@pytest.fixture
def notifier() -> CartEventNotifier:
    return CartEventNotifier()


@pytest.fixture
def recorder(notifier: CartEventNotifier) -> EventRecorder:
    recorder = EventRecorder()
    notifier.subscribe(recorder)
    return recorder


@pytest.fixture
def ledger(store: MemorySessionStore, notifier: CartEventNotifier) -> CartLedger:
    return CartLedger(store, notifier=notifier, settings=Settings())


@pytest.fixture
def shared_ledger(store: MemorySessionStore, notifier: CartEventNotifier):
    """Install an in-memory store as the process-wide ledger backend."""
    cart_storage.configure(store=store, notifier=notifier, settings=Settings())
    yield store
    cart_storage.configure()
