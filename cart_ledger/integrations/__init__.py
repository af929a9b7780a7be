"""External collaborators: session storage backends."""
from __future__ import annotations

from cart_ledger.integrations.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
    build_session_store,
)

__all__ = ["MemorySessionStore", "RedisSessionStore", "SessionStore", "build_session_store"]
