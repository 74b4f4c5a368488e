# SPDX-License-Identifier: Apache-2.0
"""Process-wide catalogue of stores and the actions they handle."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from .errors import DuplicateStoreError, InvalidStoreError, UnregisteredStoreError

log = logging.getLogger(__name__)

DEFAULT_ACTION = "default"

HandlerRef = str | Callable[..., Any]


@dataclass(slots=True)
class HandlerRegistration:
    action: str
    store_name: str
    handler: HandlerRef


def get_store_name(store: Any) -> str | None:
    """Return the name of a store given either its name or its descriptor."""
    if isinstance(store, str):
        return store
    return getattr(store, "store_name", None)


class StoreRegistry:
    """Maps store names to factories and action names to handler registrations.

    Populate one registry during startup and hand it to every ``Dispatcher``
    created afterwards; it is not modified once sessions are running.
    """

    def __init__(self) -> None:
        self._stores: Dict[str, Any] = {}
        self._handlers: Dict[str, List[HandlerRegistration]] = {}

    def register_store(self, store: Any) -> Any:
        store_name = get_store_name(store)
        if not store_name:
            raise InvalidStoreError("store is required to have a `store_name` attribute")
        existing = self._stores.get(store_name)
        if existing is not None:
            if existing is store:
                return store
            raise DuplicateStoreError(f"store `{store_name}` has already been registered")
        self._stores[store_name] = store
        handlers = getattr(store, "handlers", None) or {}
        for action, handler in handlers.items():
            self.register_handler(action, store_name, handler)
        log.debug("registered store %s for actions %s", store_name, sorted(handlers))
        return store

    def register_handler(self, action: str, store_name: str, handler: HandlerRef) -> None:
        self._handlers.setdefault(action, []).append(
            HandlerRegistration(action=action, store_name=store_name, handler=handler)
        )

    def is_registered(self, store: Any) -> bool:
        store_name = get_store_name(store)
        registered = self._stores.get(store_name) if store_name else None
        if registered is None:
            return False
        if not isinstance(store, str) and store is not registered:
            return False
        return True

    def get_store_name(self, store: Any) -> str:
        store_name = get_store_name(store)
        if not store_name:
            raise InvalidStoreError(f"cannot resolve a store name from {store!r}")
        return store_name

    def get_factory(self, store: Any) -> Any:
        store_name = self.get_store_name(store)
        try:
            return self._stores[store_name]
        except KeyError:
            raise UnregisteredStoreError(f"store {store_name} was not registered") from None

    def store_names(self) -> List[str]:
        return list(self._stores)

    def handlers_for(self, action: str) -> List[HandlerRegistration]:
        return list(self._handlers.get(action, []))

    def has_handlers(self, action: str) -> bool:
        return bool(self._handlers.get(action) or self._handlers.get(DEFAULT_ACTION))

    def resolve(self, action: str) -> Dict[str, HandlerRef]:
        """Return the handler each store runs for ``action``, in invocation order.

        Explicit registrations come first; a default registration is only used
        for stores that have no explicit handler for the action.
        """
        resolved: Dict[str, HandlerRef] = {}
        explicit = self._handlers.get(action, []) if action != DEFAULT_ACTION else []
        for registration in explicit + self._handlers.get(DEFAULT_ACTION, []):
            if registration.store_name in resolved:
                continue
            resolved[registration.store_name] = registration.handler
        return resolved
