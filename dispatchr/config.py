"""Configuration loader for dispatcher sessions."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(slots=True)
class DispatcherOptions:
    handler_timeout_s: Optional[float] = None
    log_level: str = "INFO"


@dataclass(slots=True)
class DispatchrConfig:
    version: int
    dispatcher: DispatcherOptions
    stores: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)
    metrics_port: int = 0


def _parse_dispatcher(data: Dict[str, Any]) -> DispatcherOptions:
    if not isinstance(data, dict):
        raise ConfigError("'dispatcher' must be a mapping")
    timeout = data.get("handler_timeout_s")
    if timeout is not None:
        timeout = float(timeout)
        if timeout <= 0:
            raise ConfigError("'dispatcher.handler_timeout_s' must be positive or null")
    level = str(data.get("log_level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"unknown log level '{level}'")
    return DispatcherOptions(handler_timeout_s=timeout, log_level=level)


def _parse_stores(items: Any) -> List[str]:
    if not isinstance(items, list):
        raise ConfigError("'stores' must be a list of dotted paths")
    stores: List[str] = []
    for item in items:
        if not isinstance(item, str) or not item:
            raise ConfigError(f"store entry {item!r} must be a dotted path string")
        stores.append(item)
    return stores


def parse_config(raw: Any) -> DispatchrConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("configuration root must be a mapping")
    context = raw.get("context") or {}
    if not isinstance(context, dict):
        raise ConfigError("'context' must be a mapping")
    return DispatchrConfig(
        version=int(raw.get("version", 1)),
        dispatcher=_parse_dispatcher(raw.get("dispatcher") or {}),
        stores=_parse_stores(raw.get("stores") or []),
        context=context,
        metrics_port=int(raw.get("metrics_port", 0)),
    )


def load_config(path: str | Path) -> DispatchrConfig:
    try:
        raw = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc
    return parse_config(raw)
