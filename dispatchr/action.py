# SPDX-License-Identifier: Apache-2.0
"""A single dispatched action and the completion protocol of its handlers."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List

from .errors import ActionAlreadyHandledError, DispatchError, HandlerTimeoutError
from .metrics import HANDLER_TIMEOUTS

log = logging.getLogger(__name__)

Handler = Callable[..., Any]


def accepts_done_callback(handler: Handler) -> bool:
    """True when ``handler`` takes a trailing ``done`` callback after the payload."""
    try:
        params = inspect.signature(handler).parameters.values()
    except (TypeError, ValueError):
        return False
    required = [
        p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ]
    return len(required) > 1


def gather_tokens(tokens: Dict[str, asyncio.Future], *, fail_fast: bool) -> asyncio.Future:
    """Settle a new future once ``tokens`` have settled.

    The result maps store names to handler results. The first error observed
    becomes the exception; with ``fail_fast`` it is raised without waiting for
    the remaining tokens.
    """
    loop = asyncio.get_running_loop()
    combined = loop.create_future()
    pending = set(tokens)
    results: Dict[str, Any] = {}
    errors: List[BaseException] = []

    if not pending:
        combined.set_result(results)
        return combined

    def _settled(store_name: str, token: asyncio.Future) -> None:
        pending.discard(store_name)
        if token.cancelled():
            errors.append(DispatchError(f"handler for {store_name} was cancelled"))
        elif token.exception() is not None:
            errors.append(token.exception())
        else:
            results[store_name] = token.result()
        if combined.done():
            return
        if errors and (fail_fast or not pending):
            combined.set_exception(errors[0])
        elif not pending:
            combined.set_result(results)

    for store_name, token in tokens.items():
        token.add_done_callback(lambda t, name=store_name: _settled(name, t))
    return combined


class Action:
    """Tracks one action while the routed stores handle it.

    Every store gets a completion token before any handler runs, so a handler
    waiting on a sibling always finds the sibling's token.
    """

    def __init__(self, name: str, payload: Any = None, *, handler_timeout: float | None = None):
        self.name = name
        self.payload = payload
        self.handler_timeout = handler_timeout
        self._tokens: Dict[str, asyncio.Future] = {}
        self._handling = False

    @property
    def store_names(self) -> List[str]:
        return list(self._tokens)

    def handle(self, handlers: Dict[str, Handler]) -> asyncio.Future:
        if self._handling:
            raise ActionAlreadyHandledError(f"action {self.name} is already being handled")
        self._handling = True
        loop = asyncio.get_running_loop()
        for store_name, handler in handlers.items():
            token = loop.create_future()
            self._tokens[store_name] = token
            loop.call_soon(self._call_handler, store_name, handler, token)
            if self.handler_timeout is not None:
                timer = loop.call_later(self.handler_timeout, self._expire, store_name, token)
                token.add_done_callback(lambda _t, timer=timer: timer.cancel())
        return gather_tokens(self._tokens, fail_fast=False)

    def _call_handler(self, store_name: str, handler: Handler, token: asyncio.Future) -> None:
        if token.done():
            return
        log.debug("executing %s handler for %s", self.name, store_name)
        if accepts_done_callback(handler):

            def done(error: BaseException | None = None, result: Any = None) -> None:
                if token.done():
                    log.debug("%s completed %s after its token settled", store_name, self.name)
                elif error is not None:
                    token.set_exception(error)
                else:
                    token.set_result(result)

            returned = handler(self.payload, done)
            if inspect.isawaitable(returned):
                # success still comes from done(); a raised error settles the token
                task = asyncio.ensure_future(returned)
                task.add_done_callback(lambda t: self._fail_from_task(store_name, t, token))
            return

        returned = handler(self.payload)
        if not inspect.isawaitable(returned):
            token.set_result(returned)
            return
        task = asyncio.ensure_future(returned)
        task.add_done_callback(lambda t: self._settle_from_task(store_name, t, token))

    def _settle_from_task(self, store_name: str, task: asyncio.Future, token: asyncio.Future) -> None:
        if token.done():
            if not task.cancelled():
                task.exception()
            return
        if task.cancelled():
            token.set_exception(DispatchError(f"handler for {store_name} was cancelled"))
        elif task.exception() is not None:
            token.set_exception(task.exception())
        else:
            token.set_result(task.result())

    def _fail_from_task(self, store_name: str, task: asyncio.Future, token: asyncio.Future) -> None:
        if task.cancelled():
            if not token.done():
                token.set_exception(DispatchError(f"handler for {store_name} was cancelled"))
            return
        error = task.exception()
        if error is not None and not token.done():
            token.set_exception(error)

    def _expire(self, store_name: str, token: asyncio.Future) -> None:
        if token.done():
            return
        log.warning("%s handler for %s timed out after %ss", self.name, store_name, self.handler_timeout)
        HANDLER_TIMEOUTS.labels(store_name).inc()
        token.set_exception(HandlerTimeoutError(store_name, self.name, self.handler_timeout))

    def wait_for(self, store_names: Iterable[str]) -> asyncio.Future:
        """Settle once the named stores finish this action.

        Stores that are not handling this action are skipped.
        """
        waiting: Dict[str, asyncio.Future] = {}
        for store_name in store_names:
            token = self._tokens.get(store_name)
            if token is None:
                log.debug("%s: %s is not handling this action; not waiting", self.name, store_name)
                continue
            log.debug("%s: waiting on %s", self.name, store_name)
            waiting[store_name] = token
        return gather_tokens(waiting, fail_fast=True)
