# SPDX-License-Identifier: Apache-2.0
"""Helpers for declaring stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping

from dispatchr.errors import InvalidStoreError, MixinConflictError

from .base import BaseStore, Store

_RESERVED = {"store_name", "handlers", "mixins"}


@dataclass(eq=False)
class StoreDescriptor:
    """Registers a plain factory ``(context, initial_state) -> store`` as a store."""

    store_name: str
    factory: Callable[[Any, Any], Any]
    handlers: Dict[str, Any] = field(default_factory=dict)

    def __call__(self, context: Any, initial_state: Any = None) -> Any:
        return self.factory(context, initial_state)


def _chain(first: Callable[..., Any], second: Callable[..., Any]) -> Callable[..., Any]:
    def chained(self, *args, **kwargs):
        first(self, *args, **kwargs)
        second(self, *args, **kwargs)

    chained.__name__ = getattr(first, "__name__", "chained")
    return chained


def create_store(
    store_name: str,
    handlers: Mapping[str, Any] | None = None,
    mixins: Iterable[Mapping[str, Any]] = (),
    **members: Any,
) -> type:
    """Build a ``BaseStore`` subclass from plain functions.

    ``members`` become methods of the class. Each mixin is a mapping of extra
    members: a mixin ``initialize`` runs after the one already defined, any
    other name that is already taken raises ``MixinConflictError``.
    """
    if not store_name:
        raise InvalidStoreError("create_store called without a store_name")
    namespace: Dict[str, Any] = {k: v for k, v in members.items() if k not in _RESERVED}
    for mixin in mixins:
        for name, value in mixin.items():
            if name == "initialize" and "initialize" in namespace:
                namespace[name] = _chain(namespace[name], value)
            elif name in namespace or (name != "initialize" and hasattr(BaseStore, name)):
                raise MixinConflictError(f"mixin member collision for {name!r} on {store_name}")
            else:
                namespace[name] = value
    namespace["store_name"] = store_name
    namespace["handlers"] = dict(handlers or {})
    return type(store_name, (BaseStore,), namespace)


__all__ = ["BaseStore", "Store", "StoreDescriptor", "create_store"]
