"""Resolve model association targets to dotted type names."""
from __future__ import annotations

import importlib
from typing import Any

from cart_ledger.core.exceptions import InvalidAssociation


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def resolve_model(model: Any) -> str:
    """Return the dotted name of ``model`` or raise InvalidAssociation.

    ``model`` is either a class or a dotted path (``package.module.Class``)
    that imports and resolves to a class.
    """
    if isinstance(model, type):
        return _qualified_name(model)

    if not isinstance(model, str) or "." not in model:
        raise InvalidAssociation(model)

    module_path, _, attr_path = model.rpartition(".")
    target: Any = None
    # Walk back through the path so nested classes ("mod.Outer.Inner") resolve too
    while module_path:
        try:
            target = importlib.import_module(module_path)
            break
        except ImportError:
            module_path, _, head = module_path.rpartition(".")
            attr_path = f"{head}.{attr_path}"

    if target is None:
        raise InvalidAssociation(model)

    for part in attr_path.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise InvalidAssociation(model)

    if not isinstance(target, type):
        raise InvalidAssociation(model)
    return _qualified_name(target)


__all__ = ["resolve_model"]
