# SPDX-License-Identifier: Apache-2.0
"""Per-session dispatcher: store instances, the action queue and snapshots."""
from __future__ import annotations

import asyncio
import logging
import time
import types
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

from .action import Action, Handler
from .errors import MissingHandlerMethodError, NoActiveActionError
from .metrics import ACTION_FAILURES, ACTION_LATENCY, ACTIONS_DISPATCHED, QUEUE_DEPTH
from .registry import StoreRegistry

log = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException], Any], None]


@dataclass
class _QueuedAction:
    action: Action
    future: asyncio.Future
    callback: Callback | None = None


class Dispatcher:
    """Routes actions to store instances, one action at a time.

    A dispatcher is a session: it owns one instance of each store it touches
    and a FIFO queue of actions. ``dispatch`` and ``wait_for`` must be called
    from a running event loop.
    """

    def __init__(self, context: Any = None, *, registry: StoreRegistry, handler_timeout: float | None = None):
        self.context = context if context is not None else {}
        self.registry = registry
        self.handler_timeout = handler_timeout
        self.store_instances: Dict[str, Any] = {}
        self.current_action: Action | None = None
        self._queue: Deque[_QueuedAction] = deque()

    def get_context(self) -> Any:
        return self.context

    @property
    def pending(self) -> int:
        return len(self._queue)

    def get_store(self, store: Any, initial_state: Any = None) -> Any:
        store_name = self.registry.get_store_name(store)
        instance = self.store_instances.get(store_name)
        if instance is None:
            factory = self.registry.get_factory(store_name)
            instance = factory(self.context, initial_state)
            self.store_instances[store_name] = instance
            if hasattr(instance, "set_dispatcher"):
                instance.set_dispatcher(self)
            log.debug("created store %s", store_name)
        return instance

    def dispatch(self, action_name: str, payload: Any = None, callback: Callback | None = None) -> asyncio.Future:
        """Queue ``action_name`` and return a future for its result.

        ``callback(error, result)`` is also invoked once the action settles,
        always on a later loop iteration than the ``dispatch`` call.
        """
        loop = asyncio.get_running_loop()
        queued = _QueuedAction(
            action=Action(action_name, payload, handler_timeout=self.handler_timeout),
            future=loop.create_future(),
            callback=callback,
        )
        if not self.registry.has_handlers(action_name):
            log.debug("%s does not have any registered handlers", action_name)
            loop.call_soon(self._settle, queued, None, {})
            return queued.future
        self._queue.append(queued)
        QUEUE_DEPTH.set(len(self._queue))
        log.debug("action %s added to queue", action_name)
        self._next()
        return queued.future

    def _next(self) -> Action | None:
        if self.current_action is not None:
            return self.current_action
        if not self._queue:
            return None
        loop = asyncio.get_running_loop()
        queued = self._queue.popleft()
        QUEUE_DEPTH.set(len(self._queue))
        action = queued.action
        try:
            handlers = self._resolve_handlers(action.name)
        except MissingHandlerMethodError as exc:
            log.error("cannot handle %s: %s", action.name, exc)
            ACTION_FAILURES.labels(action.name, "missing_handler").inc()
            loop.call_soon(self._settle, queued, exc, None)
            loop.call_soon(self._next)
            return None
        except Exception as exc:
            log.error("cannot create stores for %s: %r", action.name, exc)
            ACTION_FAILURES.labels(action.name, "store_init").inc()
            loop.call_soon(self._settle, queued, exc, None)
            loop.call_soon(self._next)
            return None

        self.current_action = action
        ACTIONS_DISPATCHED.labels(action.name).inc()
        log.debug("handling %s with %s", action.name, ", ".join(handlers))
        started = time.perf_counter()
        completion = action.handle(handlers)
        completion.add_done_callback(lambda fut: self._finish(queued, fut, started))
        return action

    def _finish(self, queued: _QueuedAction, completion: asyncio.Future, started: float) -> None:
        loop = asyncio.get_running_loop()
        name = queued.action.name
        self.current_action = None
        ACTION_LATENCY.labels(name).observe((time.perf_counter() - started) * 1000)
        error = completion.exception()
        if error is not None:
            log.debug("finished %s with error %r", name, error)
            ACTION_FAILURES.labels(name, type(error).__name__).inc()
            loop.call_soon(self._settle, queued, error, None)
        else:
            log.debug("finished %s", name)
            loop.call_soon(self._settle, queued, None, completion.result())
        loop.call_soon(self._next)

    @staticmethod
    def _settle(queued: _QueuedAction, error: BaseException | None, result: Any) -> None:
        future = queued.future
        if not future.done():
            if error is not None:
                future.set_exception(error)
                if queued.callback is None:
                    log.warning("action %s failed: %r", queued.action.name, error)
                # reported through the callback or the log above
                future.exception()
            else:
                future.set_result(result)
        if queued.callback is not None:
            queued.callback(error, result)

    def _resolve_handlers(self, action_name: str) -> Dict[str, Handler]:
        handlers: Dict[str, Handler] = {}
        for store_name, handler in self.registry.resolve(action_name).items():
            instance = self.get_store(store_name)
            if callable(handler):
                handlers[store_name] = types.MethodType(handler, instance)
                continue
            method = getattr(instance, handler, None)
            if not callable(method):
                raise MissingHandlerMethodError(f"{store_name} does not have a method called {handler}")
            handlers[store_name] = method
        return handlers

    def wait_for(self, stores: Any, callback: Callback | None = None) -> asyncio.Future:
        """Settle once ``stores`` have finished handling the current action.

        Accepts one store (name or descriptor) or a list of them. Stores that
        are not handling the current action are not waited on.
        """
        if self.current_action is None:
            raise NoActiveActionError("wait_for called while no action is being handled")
        if not isinstance(stores, (list, tuple, set, frozenset)):
            stores = [stores]
        store_names = [self.registry.get_store_name(store) for store in stores]
        waiting = self.current_action.wait_for(store_names)
        if callback is not None:

            def _notify(fut: asyncio.Future) -> None:
                error = fut.exception()
                callback(error, None if error is not None else fut.result())

            waiting.add_done_callback(_notify)
        return waiting

    def snapshot(self) -> Dict[str, Any]:
        stores: Dict[str, Any] = {}
        for store_name, instance in self.store_instances.items():
            serialize = getattr(instance, "to_json", None) or getattr(instance, "dehydrate", None)
            if serialize is None:
                continue
            should_dehydrate = getattr(instance, "should_dehydrate", None)
            if should_dehydrate is not None and not should_dehydrate():
                continue
            stores[store_name] = serialize()
        return {"context": self.context, "stores": stores}

    def restore(self, state: Dict[str, Any]) -> None:
        self.context = state.get("context") or {}
        for store_name, store_state in (state.get("stores") or {}).items():
            existing = self.store_instances.get(store_name)
            if existing is None:
                self.get_store(store_name, store_state)
            elif hasattr(existing, "rehydrate"):
                existing.rehydrate(store_state)
            else:
                log.warning("store %s already exists and cannot be rehydrated; skipping", store_name)
        log.debug("restored %d stores", len(state.get("stores") or {}))
