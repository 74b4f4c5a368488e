# SPDX-License-Identifier: Apache-2.0
"""Stores used by the test-suite, one per handler style."""
from __future__ import annotations

import asyncio
from typing import Any

from dispatchr.stores import BaseStore, StoreDescriptor, create_store


def navigate(self, payload, done):
    self.state["called"] = True
    self.state["page"] = "home"
    done()


class Store:
    """Plain object satisfying the store contract without ``BaseStore``."""

    store_name = "Store"
    handlers = {
        "NAVIGATE": navigate,
        "DELAY": "delay",
        "DELAY_PROMISE": "delay_promise",
        "ERROR": "error",
        "DISPATCH": "dispatch_in_dispatch",
    }

    def __init__(self, context, initial_state=None):
        self.context = context
        self.state = initial_state if initial_state is not None else {}
        self.dispatcher = None
        self.nested = None

    def set_dispatcher(self, dispatcher):
        self.dispatcher = dispatcher

    def error(self, payload, done):
        self.state["called"] = True
        done(ValueError("This is an error"))

    def delay(self, payload, done):
        self.state["called"] = True

        def after(error, _result):
            if error is not None:
                done(error)
                return
            delayed = self.dispatcher.get_store("DelayedStore")
            if not delayed.get_state().get("final"):
                done(AssertionError("DelayedStore did not finish first"))
                return
            self.state["page"] = "delay"
            done()

        self.dispatcher.wait_for("DelayedStore", after)

    async def delay_promise(self, payload):
        self.state["called"] = True
        await self.dispatcher.wait_for(["PromiseStore"])
        if not self.dispatcher.get_store("PromiseStore").get_state()["final"]:
            raise AssertionError("PromiseStore did not finish first")
        self.state["page"] = "delayPromise"

    def dispatch_in_dispatch(self, payload, done):
        self.nested = self.dispatcher.dispatch("NAVIGATE", {}, payload.get("callback"))
        done()

    def get_state(self):
        return self.state

    def to_json(self):
        return self.state


class DelayedStore(BaseStore):
    store_name = "DelayedStore"
    handlers = {"DELAY": "delay"}

    def initialize(self):
        self.state = {"final": False}

    async def delay(self, payload):
        self.state["page"] = "delay"
        await asyncio.sleep(0.01)
        self.state["final"] = True
        self.emit_change()


def _promise_initialize(self):
    self.state = {"final": False}


async def _promise_delay(self, payload):
    self.state["page"] = "delay"
    await asyncio.sleep(0.01)
    self.state["final"] = True
    return "settled"


PromiseStore = create_store(
    "PromiseStore",
    handlers={"DELAY_PROMISE": "delay"},
    initialize=_promise_initialize,
    delay=_promise_delay,
)


class DefaultStore(BaseStore):
    store_name = "DefaultStore"
    handlers = {"default": "on_any", "NAVIGATE": "on_navigate"}

    def initialize(self):
        self.state = {"seen": []}

    def on_any(self, payload):
        self.state["seen"].append(("any", payload.get("tag")))

    def on_navigate(self, payload):
        self.state["seen"].append(("navigate", payload.get("tag")))


class _Opaque:
    """No serialization methods: never part of a snapshot."""

    def __init__(self, context, initial_state=None):
        self.context = context
        self.visits = 0

    def navigate(self, payload):
        self.visits += 1

    def get_state(self):
        return {"visits": self.visits}


OpaqueStore = StoreDescriptor(
    store_name="OpaqueStore",
    factory=lambda context, initial_state: _Opaque(context, initial_state),
    handlers={"NAVIGATE": "navigate"},
)


class BrokenStore(BaseStore):
    store_name = "BrokenStore"
    handlers = {"BROKEN": "missing_method", "NAVIGATE": "navigate"}

    def navigate(self, payload):
        self.state["called"] = True


class SlowStore(BaseStore):
    store_name = "SlowStore"
    handlers = {"HANG": "hang", "EXPLODE": "explode", "NAVIGATE": "navigate"}

    def hang(self, payload, done):
        self.state["hanging"] = True

    def explode(self, payload):
        raise RuntimeError("handler blew up outside its completion channel")

    def navigate(self, payload):
        self.state["page"] = "home"


class PrivateStore(BaseStore):
    store_name = "PrivateStore"
    handlers = {"NAVIGATE": "navigate"}

    def navigate(self, payload: Any):
        self.state["secret"] = payload.get("secret")

    def should_dehydrate(self):
        return False


class ExplodingStore(BaseStore):
    store_name = "ExplodingStore"
    handlers = {"BOOM": "boom"}

    def initialize(self):
        raise RuntimeError("cannot build ExplodingStore")

    def boom(self, payload):
        self.state["boom"] = True


class OptionalArgsStore(BaseStore):
    """Handlers with defaulted parameters still use their return value."""

    store_name = "OptionalArgsStore"
    handlers = {"NAVIGATE": "navigate", "LOAD": "load"}

    def navigate(self, payload, meta=None):
        self.state["page"] = payload.get("page")
        return meta

    async def load(self, payload, done):
        await asyncio.sleep(0)
        if payload.get("fail"):
            raise LookupError("nothing to load")
        self.state["loaded"] = True
        done(None, "loaded")


def _chained(store_name, waits_on, delay):
    async def step(self, payload):
        if waits_on is not None:
            await self.dispatcher.wait_for(waits_on)
        await asyncio.sleep(delay)
        payload["order"].append(store_name)

    return create_store(store_name, handlers={"CHAIN": "step"}, step=step)


ChainC = _chained("ChainC", None, 0.02)
ChainB = _chained("ChainB", "ChainC", 0)
ChainA = _chained("ChainA", "ChainB", 0)
