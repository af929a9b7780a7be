"""Shared cart ledger used by the HTTP routes and any in-process caller."""
from __future__ import annotations

from cart_ledger.core.config import Settings, load_settings
from cart_ledger.integrations.session_store import SessionStore, build_session_store
from cart_ledger.services.cart_events import CartEventNotifier
from cart_ledger.services.cart_ledger import CartLedger

_settings: Settings | None = None
_store: SessionStore | None = None
_notifier: CartEventNotifier | None = None


def configure(
    store: SessionStore | None = None,
    notifier: CartEventNotifier | None = None,
    settings: Settings | None = None,
) -> None:
    """Replace the process-wide store/notifier (tests and app bootstrap)."""
    global _settings, _store, _notifier
    _settings = settings
    _store = store
    _notifier = notifier


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_notifier() -> CartEventNotifier:
    global _notifier
    if _notifier is None:
        _notifier = CartEventNotifier()
    return _notifier


def get_store() -> SessionStore:
    global _store
    if _store is None:
        _store = build_session_store(get_settings())
    return _store


def get_cart_ledger(name: str | None = None) -> CartLedger:
    """Ledger for ``name`` (default cart when omitted) on the shared store."""
    return CartLedger(get_store(), name=name, notifier=get_notifier(), settings=get_settings())


__all__ = ["configure", "get_cart_ledger", "get_notifier", "get_settings", "get_store"]
