# SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the dispatcher, the registry and store helpers."""
from __future__ import annotations


class DispatchError(Exception):
    """Base class for every dispatchr error."""


class InvalidStoreError(DispatchError):
    pass


class DuplicateStoreError(DispatchError):
    pass


class UnregisteredStoreError(DispatchError):
    pass


class MissingHandlerMethodError(DispatchError):
    pass


class NoActiveActionError(DispatchError):
    pass


class ActionAlreadyHandledError(DispatchError):
    pass


class HandlerTimeoutError(DispatchError):
    def __init__(self, store_name: str, action_name: str, timeout: float):
        super().__init__(f"{store_name} did not finish handling {action_name} within {timeout}s")
        self.store_name = store_name
        self.action_name = action_name
        self.timeout = timeout


class MixinConflictError(DispatchError):
    pass


class SnapshotFormatError(DispatchError):
    pass


class ConfigError(DispatchError):
    pass
