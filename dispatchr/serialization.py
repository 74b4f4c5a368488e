# SPDX-License-Identifier: Apache-2.0
"""Encoding of dispatcher snapshots for transfer between processes."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import SnapshotFormatError


def fmt_for_path(path: str | Path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in {".yaml", ".yml"}:
        return "yaml"
    return "json"


def encode_snapshot(snapshot: Dict[str, Any], fmt: str = "json") -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return json.dumps(snapshot, indent=2, sort_keys=True)
    if fmt == "yaml":
        return yaml.safe_dump(snapshot, sort_keys=True)
    raise SnapshotFormatError(f"unsupported snapshot format '{fmt}'")


def decode_snapshot(data: str | bytes, fmt: str = "json") -> Dict[str, Any]:
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    fmt = fmt.lower()
    try:
        if fmt == "json":
            blob = json.loads(data)
        elif fmt == "yaml":
            blob = yaml.safe_load(data)
        else:
            raise SnapshotFormatError(f"unsupported snapshot format '{fmt}'")
    except (ValueError, yaml.YAMLError) as exc:
        raise SnapshotFormatError(f"cannot decode snapshot: {exc}") from exc
    if not isinstance(blob, dict):
        raise SnapshotFormatError("snapshot must be a mapping")
    if not isinstance(blob.get("stores") or {}, dict):
        raise SnapshotFormatError("snapshot 'stores' must be a mapping of store name to state")
    return blob
