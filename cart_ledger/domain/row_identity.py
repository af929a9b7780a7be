"""Stable row identifiers for (item, options) pairs."""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _canonical(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def identify(item_id: Any, options: Mapping[str, Any] | None = None) -> str:
    """Return the row id for an item and its chosen options.

    Options are ordered by key before hashing, so two mappings with the same
    pairs give the same id whatever order the caller built them in.

    Args:
        item_id: Caller product identifier
        options: Option name -> value mapping (may be empty or None)

    Returns:
        32-char hex digest
    """
    payload = json.dumps(
        [item_id, _canonical(options or {})],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


__all__ = ["identify"]
