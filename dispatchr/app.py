"""Command line runner: restore a session, replay actions, emit a snapshot."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from prometheus_client import start_http_server

from dispatchr.config import DispatchrConfig, load_config
from dispatchr.dispatcher import Dispatcher
from dispatchr.errors import ConfigError, DispatchError
from dispatchr.registry import StoreRegistry
from dispatchr.serialization import decode_snapshot, encode_snapshot, fmt_for_path
from dispatchr.utils import resolve_callable

log = logging.getLogger("dispatchr")

ScriptEntry = Tuple[str, Any]


def build_registry(store_paths: Iterable[str]) -> StoreRegistry:
    registry = StoreRegistry()
    for path in store_paths:
        try:
            store = resolve_callable(path)
        except (ImportError, AttributeError, ValueError) as exc:
            raise ConfigError(f"cannot load store '{path}': {exc}") from exc
        registry.register_store(store)
    log.info("registered %d stores", len(registry.store_names()))
    return registry


def load_script(path: str | Path) -> List[ScriptEntry]:
    raw = yaml.safe_load(Path(path).read_text()) or []
    if not isinstance(raw, list):
        raise ConfigError(f"action script {path} must be a list")
    entries: List[ScriptEntry] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("action"):
            raise ConfigError(f"action script entry {item!r} needs an 'action' name")
        entries.append((str(item["action"]), item.get("payload") or {}))
    return entries


class DispatchRunner:
    def __init__(self, config: DispatchrConfig, registry: StoreRegistry | None = None):
        self.config = config
        self.registry = registry if registry is not None else build_registry(config.stores)

    def new_session(self) -> Dispatcher:
        return Dispatcher(
            dict(self.config.context),
            registry=self.registry,
            handler_timeout=self.config.dispatcher.handler_timeout_s,
        )

    async def run(
        self, script: Iterable[ScriptEntry], restore: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, Any], List[Tuple[str, BaseException]]]:
        session = self.new_session()
        if restore is not None:
            session.restore(restore)
        failures: List[Tuple[str, BaseException]] = []
        for action_name, payload in script:
            try:
                await session.dispatch(action_name, payload)
            except DispatchError as exc:
                failures.append((action_name, exc))
                log.error("action %s failed: %s", action_name, exc)
            except Exception as exc:
                failures.append((action_name, exc))
                log.exception("action %s failed in a store handler", action_name)
        return session.snapshot(), failures


async def main_async(args) -> int:
    config = load_config(args.config)
    runner = DispatchRunner(config)
    if config.metrics_port:
        start_http_server(config.metrics_port)
    restore = None
    if args.restore:
        restore = decode_snapshot(Path(args.restore).read_text(), fmt_for_path(args.restore))
    script = load_script(args.actions) if args.actions else []
    snapshot, failures = await runner.run(script, restore)
    if args.output:
        Path(args.output).write_text(encode_snapshot(snapshot, fmt_for_path(args.output)))
        log.info("snapshot written to %s", args.output)
    else:
        sys.stdout.write(encode_snapshot(snapshot) + "\n")
    log.info("replayed %d actions, %d failed", len(script), len(failures))
    return 1 if failures else 0


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay actions through a dispatchr session")
    parser.add_argument("--config", default="config/dispatchr.yaml")
    parser.add_argument("--restore", help="snapshot file to restore before replaying")
    parser.add_argument("--actions", help="YAML/JSON list of {action, payload} entries")
    parser.add_argument("--output", help="where to write the final snapshot (default: stdout)")
    parser.add_argument("--log-level", help="overrides dispatcher.log_level from the config")
    args = parser.parse_args(argv)
    level = args.log_level.upper() if args.log_level else None
    if level is None:
        try:
            level = load_config(args.config).dispatcher.log_level
        except (OSError, ConfigError):
            level = "INFO"
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
