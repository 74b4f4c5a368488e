# SPDX-License-Identifier: Apache-2.0
"""Store contract and an optional base class with change notifications."""
from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Dict, List, Protocol, runtime_checkable

log = logging.getLogger(__name__)


@runtime_checkable
class Store(Protocol):
    """What the dispatcher expects from a store instance.

    Handlers, ``to_json``/``dehydrate``, ``rehydrate``, ``should_dehydrate`` and
    ``set_dispatcher`` are optional and looked up when needed.
    """

    def get_state(self) -> Any: ...


class BaseStore:
    """Convenience base class for stores.

    Subclasses set ``store_name`` and ``handlers`` and put their default state
    in ``initialize``; a state passed at construction is applied afterwards
    through ``rehydrate``.
    """

    store_name: ClassVar[str | None] = None
    handlers: ClassVar[Dict[str, Any]] = {}

    def __init__(self, context: Any = None, initial_state: Any = None):
        self.context = context
        self.dispatcher = None
        self.state: Dict[str, Any] = {}
        self._listeners: List[Callable[[Any], None]] = []
        self.initialize()
        if initial_state is not None:
            self.rehydrate(initial_state)

    def initialize(self) -> None:
        """Set up default state."""

    def set_dispatcher(self, dispatcher) -> None:
        self.dispatcher = dispatcher

    def get_context(self) -> Any:
        return self.context

    def add_change_listener(self, callback: Callable[[Any], None]) -> None:
        self._listeners.append(callback)

    def remove_change_listener(self, callback: Callable[[Any], None]) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            log.debug("listener %r was not registered on %s", callback, self.store_name)

    def emit_change(self, param: Any = None) -> None:
        for listener in list(self._listeners):
            listener(param if param is not None else self)

    def get_state(self) -> Any:
        return self.state

    def dehydrate(self) -> Any:
        return self.state

    def rehydrate(self, state: Any) -> None:
        self.state = state
