"""Before/after notifications around cart mutations."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from cart_ledger.logging_config import logger

CART_ADD = "cart.add"
CART_ADDED = "cart.added"
CART_UPDATE = "cart.update"
CART_UPDATED = "cart.updated"
CART_REMOVE = "cart.remove"
CART_REMOVED = "cart.removed"
CART_DESTROY = "cart.destroy"
CART_DESTROYED = "cart.destroyed"
CART_BATCH = "cart.batch"
CART_BATCHED = "cart.batched"

EVENT_NAMES = frozenset(
    {
        CART_ADD,
        CART_ADDED,
        CART_UPDATE,
        CART_UPDATED,
        CART_REMOVE,
        CART_REMOVED,
        CART_DESTROY,
        CART_DESTROYED,
        CART_BATCH,
        CART_BATCHED,
    }
)


@dataclass(frozen=True, slots=True)
class CartEvent:
    name: str
    cart: str
    payload: dict[str, Any] = field(default_factory=dict)


CartObserver = Callable[[CartEvent], Any]


@dataclass(slots=True, eq=False)
class _Subscription:
    callback: CartObserver
    events: frozenset[str] | None


class CartEventNotifier:
    """
    Ordered list of observers invoked synchronously around each mutation.

    Observers are fire-and-forget: an exception raised by one is logged and
    the remaining observers still run. The ledger fires after-events only
    once the snapshot has been written, so an observer can never undo it.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def subscribe(
        self, callback: CartObserver, events: Iterable[str] | None = None
    ) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        names = frozenset(events) if events is not None else None
        if names is not None:
            unknown = names - EVENT_NAMES
            if unknown:
                raise ValueError(f"Unknown cart events: {sorted(unknown)}")

        subscription = _Subscription(callback=callback, events=names)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def fire(self, name: str, cart: str, payload: dict[str, Any] | None = None) -> CartEvent:
        event = CartEvent(name=name, cart=cart, payload=dict(payload or {}))
        for subscription in list(self._subscriptions):
            if subscription.events is not None and name not in subscription.events:
                continue
            try:
                subscription.callback(event)
            except Exception:
                logger.exception("Cart observer %r failed on %s", subscription.callback, name)
        return event

    def __len__(self) -> int:
        return len(self._subscriptions)


__all__ = [
    "CART_ADD",
    "CART_ADDED",
    "CART_BATCH",
    "CART_BATCHED",
    "CART_DESTROY",
    "CART_DESTROYED",
    "CART_REMOVE",
    "CART_REMOVED",
    "CART_UPDATE",
    "CART_UPDATED",
    "EVENT_NAMES",
    "CartEvent",
    "CartEventNotifier",
    "CartObserver",
]
