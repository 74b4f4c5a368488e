# SPDX-License-Identifier: Apache-2.0
"""Utility helpers for loading stores from configuration."""
from __future__ import annotations

import importlib
from typing import Any


def resolve_callable(qualname: str) -> Any:
    """Resolve a dotted path to an object.

    Supports both spellings:
    - `package.module.StoreClass`
    - `package.module:StoreClass`
    """
    if ":" in qualname:
        module_name, attr_name = qualname.split(":", 1)
    else:
        module_name, _, attr_name = qualname.rpartition(".")
    if not module_name or not attr_name:
        raise ValueError(f"'{qualname}' is not a dotted path to an object")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr_name)
    except AttributeError as exc:
        raise AttributeError(f"'{attr_name}' not found in module '{module_name}'") from exc
