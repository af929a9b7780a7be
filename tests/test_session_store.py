"""Tests for session store backends."""
from __future__ import annotations

import json

import pytest

import cart_ledger.integrations.session_store as session_store_module
from cart_ledger.core.config import Settings
from cart_ledger.integrations.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
    build_session_store,
)
from cart_ledger.services.cart_ledger import CartLedger


class TestMemorySessionStore:
    def test_missing_key_returns_none(self, store):
        assert store.get("cart.default") is None

    def test_put_get_forget(self, store):
        assert store.put("k", {"a": 1}) is True
        assert store.get("k") == {"a": 1}
        assert store.forget("k") is True
        assert store.get("k") is None
        assert store.forget("k") is True

    def test_values_are_copied(self, store):
        value = {"rows": {"a": 1}}
        store.put("k", value)
        value["rows"]["a"] = 2
        fetched = store.get("k")
        fetched["rows"]["a"] = 3
        assert store.get("k") == {"rows": {"a": 1}}

    def test_expired_values_are_dropped(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(session_store_module.time, "time", lambda: now[0])
        store = MemorySessionStore(ttl_seconds=60)
        store.put("k", {"a": 1})

        now[0] += 30
        assert store.get("k") == {"a": 1}
        now[0] += 61
        assert store.get("k") is None
        assert "k" not in store

    def test_satisfies_protocol(self, store):
        assert isinstance(store, SessionStore)


class TestRedisSessionStore:
    def test_ledger_state_is_shared_between_instances(self, fake_redis):
        store_a = RedisSessionStore(fake_redis, ttl_seconds=120)
        store_b = RedisSessionStore(fake_redis, ttl_seconds=120)

        row_id = CartLedger(store_a, settings=Settings()).add_one("sku1", "Shirt", 2, "9.99")

        row = CartLedger(store_b, settings=Settings()).get(row_id)
        assert row is not None
        assert row.quantity == 2
        assert json.loads(fake_redis.data["cart.default"])[row_id]["unit_price"] == "9.99"

    def test_every_write_refreshes_ttl(self, fake_redis):
        store = RedisSessionStore(fake_redis, ttl_seconds=300)
        ledger = CartLedger(store, settings=Settings())

        row_id = ledger.add_one("sku1", "Shirt", 1, 10)
        calls_before = len(fake_redis.setex_calls)
        ledger.update(row_id, 3)

        assert len(fake_redis.setex_calls) == calls_before + 1
        assert fake_redis.expiry["cart.default"] == 300

    def test_write_failure_returns_false(self, fake_redis):
        store = RedisSessionStore(fake_redis)
        fake_redis.fail_writes = True

        assert store.put("k", {"a": 1}) is False
        assert store.forget("k") is False
        assert CartLedger(store, settings=Settings()).add_one("sku1", "Shirt", 1, 10) is None

    def test_read_failure_reads_as_empty(self, fake_redis):
        store = RedisSessionStore(fake_redis)
        store.put("cart.default", {"x": {}})
        fake_redis.fail_reads = True

        assert store.get("cart.default") is None
        assert CartLedger(store, settings=Settings()).all() == []

    def test_undecodable_value_reads_as_none(self, fake_redis):
        fake_redis.data["k"] = "{not json"
        assert RedisSessionStore(fake_redis).get("k") is None

    def test_unserializable_value_is_rejected(self, fake_redis):
        assert RedisSessionStore(fake_redis).put("k", {"a": object()}) is False
        assert "k" not in fake_redis.data

    def test_destroy_deletes_key(self, fake_redis):
        ledger = CartLedger(RedisSessionStore(fake_redis), settings=Settings())
        ledger.add_one("sku1", "Shirt", 1, 10)

        assert ledger.destroy() is True
        assert "cart.default" not in fake_redis.data


class TestBuildSessionStore:
    @pytest.fixture
    def patched_redis(self, monkeypatch, fake_redis):
        monkeypatch.setattr(
            session_store_module.redis, "from_url", lambda *args, **kwargs: fake_redis
        )
        return fake_redis

    def test_memory_without_url(self):
        store = build_session_store(Settings(redis_url=None))
        assert isinstance(store, MemorySessionStore)

    def test_redis_when_reachable(self, patched_redis):
        store = build_session_store(Settings(redis_url="redis://fake", cart_ttl_seconds=60))
        assert isinstance(store, RedisSessionStore)
        store.put("k", [1])
        assert patched_redis.expiry["k"] == 60

    def test_memory_when_unreachable(self, patched_redis):
        patched_redis.reachable = False
        store = build_session_store(Settings(redis_url="redis://fake"))
        assert isinstance(store, MemorySessionStore)
