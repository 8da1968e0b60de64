"""Configuration loading utilities for the directory watcher."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

import yaml # type: ignore

from .events import Op


logger = logging.getLogger(__name__)

DEFAULT_ROOT = "."
DEFAULT_LOG_FILE = "monitor.log"
DEFAULT_EVENTS = "create,write,remove,rename"
DEFAULT_ALLOWLIST = "allowed_extensions.txt"
DEFAULT_POLL_INTERVAL = 1.0

_PATH_KEYS = ("root_path", "log_file", "allowlist")


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


@dataclass(frozen=True)
class WatchConfig:
    """Options describing what to watch and how to react."""

    root_path: Path
    log_file: Path
    events: FrozenSet[Op]
    allowlist: Path
    polling: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    desktop_notify: bool = True


def load_config(path: Optional[Path] = None, overrides: Optional[Mapping[str, Any]] = None) -> WatchConfig:
    """Build the watcher configuration from an optional YAML file and CLI overrides.

    Values in ``overrides`` that are ``None`` are treated as "not given" and
    leave the file value (or the default) in place. Relative paths read from
    the file resolve against the file's directory; relative paths given as
    overrides resolve against the working directory.
    """

    raw: Dict[str, Any] = {}
    if path is not None:
        raw = _read_config_file(path)

    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value

    return _parse_watch_config(raw)


def parse_events(raw: Any, field_name: str = "watch.events") -> FrozenSet[Op]:
    """Turn ``"create,Write"`` or ``["create", "write"]`` into a set of kinds."""

    tokens = _ensure_str_list(raw, field_name)
    kinds = set()
    for chunk in tokens:
        for token in chunk.split(","):
            token = token.strip().lower()
            if not token:
                continue
            try:
                kinds.add(Op(token))
            except ValueError as exc:
                allowed = ", ".join(option.value for option in Op)
                raise ConfigError(
                    f"{field_name} contains unknown event '{token}'; expected one of: {allowed}"
                ) from exc
    if not kinds:
        raise ConfigError(f"{field_name} must select at least one event kind")
    return frozenset(kinds)


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read configuration file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    section = data.get("watch", {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError("'watch' section must be a mapping")

    resolved = dict(section)
    for key in _PATH_KEYS:
        value = resolved.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigError(f"watch.{key} must be a string")
        candidate = Path(value).expanduser()
        if not candidate.is_absolute():
            candidate = path.parent / candidate
        resolved[key] = candidate
    logger.debug("Loaded configuration file %s", path)
    return resolved


def _parse_watch_config(raw: Dict[str, Any]) -> WatchConfig:
    root_path = _as_path(raw.get("root_path", DEFAULT_ROOT), "watch.root_path")
    if not root_path.exists():
        raise ConfigError(f"Directory does not exist: {root_path}")
    if not root_path.is_dir():
        raise ConfigError(f"Provided path is not a directory: {root_path}")

    log_file = _as_path(raw.get("log_file", DEFAULT_LOG_FILE), "watch.log_file")
    allowlist = _as_path(raw.get("allowlist", DEFAULT_ALLOWLIST), "watch.allowlist")
    events = parse_events(raw.get("events", DEFAULT_EVENTS))
    if events == frozenset({Op.CHMOD}):
        logger.warning(
            "Only 'chmod' events selected; attribute changes are reported as 'write', so nothing will be logged"
        )

    polling = raw.get("polling", False)
    if not isinstance(polling, bool):
        raise ConfigError("watch.polling must be a boolean")

    desktop_notify = raw.get("desktop_notify", True)
    if not isinstance(desktop_notify, bool):
        raise ConfigError("watch.desktop_notify must be a boolean")

    poll_interval = raw.get("poll_interval", DEFAULT_POLL_INTERVAL)
    try:
        poll_interval_val = float(poll_interval)
    except (TypeError, ValueError) as exc:
        raise ConfigError("watch.poll_interval must be numeric") from exc
    if poll_interval_val <= 0:
        raise ConfigError("watch.poll_interval must be positive")

    return WatchConfig(
        root_path=root_path,
        log_file=log_file,
        events=events,
        allowlist=allowlist,
        polling=polling,
        poll_interval=poll_interval_val,
        desktop_notify=desktop_notify,
    )


def _as_path(value: Any, field_name: str) -> Path:
    if isinstance(value, Path):
        return value.expanduser().resolve()
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{field_name} must be a non-empty string")
    return Path(value).expanduser().resolve()


def _ensure_str_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: List[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items
