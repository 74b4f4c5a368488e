# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for dispatcher tests."""
from __future__ import annotations

import pytest

from dispatchr.dispatcher import Dispatcher
from dispatchr.registry import StoreRegistry

from .mock_stores import DelayedStore, PromiseStore, Store


@pytest.fixture
def registry() -> StoreRegistry:
    """A registry holding the stores most tests dispatch to."""
    registry = StoreRegistry()
    registry.register_store(Store)
    registry.register_store(DelayedStore)
    registry.register_store(PromiseStore)
    return registry


@pytest.fixture
def context():
    return {"test": "test"}


@pytest.fixture
def dispatcher(registry, context) -> Dispatcher:
    return Dispatcher(context, registry=registry)


@pytest.fixture
def make_dispatcher():
    """Build a dispatcher over its own registry of the given stores."""

    def _make(*stores, context=None, handler_timeout=None) -> Dispatcher:
        registry = StoreRegistry()
        for store in stores:
            registry.register_store(store)
        return Dispatcher(context or {}, registry=registry, handler_timeout=handler_timeout)

    return _make
