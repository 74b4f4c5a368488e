# SPDX-License-Identifier: Apache-2.0
"""In-process action dispatcher for store-based application state."""
from __future__ import annotations

from .action import Action
from .dispatcher import Dispatcher
from .errors import (
    ActionAlreadyHandledError,
    ConfigError,
    DispatchError,
    DuplicateStoreError,
    HandlerTimeoutError,
    InvalidStoreError,
    MissingHandlerMethodError,
    MixinConflictError,
    NoActiveActionError,
    SnapshotFormatError,
    UnregisteredStoreError,
)
from .registry import DEFAULT_ACTION, StoreRegistry
from .stores import BaseStore, Store, StoreDescriptor, create_store

__all__ = [
    "Action",
    "ActionAlreadyHandledError",
    "BaseStore",
    "ConfigError",
    "DEFAULT_ACTION",
    "DispatchError",
    "Dispatcher",
    "DuplicateStoreError",
    "HandlerTimeoutError",
    "InvalidStoreError",
    "MissingHandlerMethodError",
    "MixinConflictError",
    "NoActiveActionError",
    "SnapshotFormatError",
    "Store",
    "StoreDescriptor",
    "StoreRegistry",
    "UnregisteredStoreError",
    "create_store",
]
