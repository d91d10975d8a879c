"""Plugin configuration loaded from `cliphist.yaml` in the host's config dir.

Example::

    max_entries: 20
    prefix: ":c "
    backend: command          # or "log"
    external_tool_path: /usr/bin/cliphist
    decode_timeout: 5
    logging:
      file: ~/.cache/cliphist-query.log
      level: debug

A missing, unreadable or malformed file never aborts startup: a warning is
logged and the defaults are used.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cliphist_query.errors import ConfigInvalid

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "cliphist.yaml"
BACKENDS = ("log", "command")
DEFAULT_TOOL = "cliphist"
DEFAULT_BUCKET = "b"


def default_config_dir() -> Path:
    """Config directory used by the CLI when the host doesn't pass one."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "cliphist-query"


@dataclass
class Config:
    max_entries: int = 10
    prefix: str = ""
    backend: str = "command"
    store_path: str | None = None
    bucket: str = DEFAULT_BUCKET
    external_tool_path: str = DEFAULT_TOOL
    decode_timeout: float | None = None
    logging: dict[str, Any] = field(default_factory=dict)


def load_config(config_dir: Path | str) -> Config:
    """Load the config file from config_dir, falling back to defaults."""
    path = Path(config_dir) / CONFIG_FILE_NAME
    if not path.exists():
        log.debug("No config at %s, using defaults", path)
        return Config()
    try:
        return parse_config(_read(path))
    except ConfigInvalid as e:
        log.warning("Error loading cliphist config %s: %s", path, e)
        return Config()


def _read(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigInvalid(f"unreadable: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"invalid YAML: {e}") from e


def parse_config(data: Any) -> Config:
    """Validate a parsed YAML document. Raises ConfigInvalid on bad values."""
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigInvalid(f"expected a mapping, got {type(data).__name__}")

    data = dict(data)
    # Older configs call the log location db_path
    if "db_path" in data and "store_path" not in data:
        data["store_path"] = data.pop("db_path")

    known = {
        "max_entries",
        "prefix",
        "backend",
        "store_path",
        "bucket",
        "external_tool_path",
        "decode_timeout",
        "logging",
    }
    for key in sorted(set(data) - known):
        log.debug("Ignoring unknown config key %r", key)

    config = Config()

    max_entries = data.get("max_entries", config.max_entries)
    if isinstance(max_entries, bool) or not isinstance(max_entries, int):
        raise ConfigInvalid(f"max_entries must be an integer, got {max_entries!r}")
    if max_entries < 1:
        raise ConfigInvalid(f"max_entries must be positive, got {max_entries}")
    config.max_entries = max_entries

    for key in ("prefix", "bucket", "external_tool_path"):
        value = data.get(key, getattr(config, key))
        if not isinstance(value, str):
            raise ConfigInvalid(f"{key} must be a string, got {value!r}")
        setattr(config, key, value)
    if not config.external_tool_path:
        raise ConfigInvalid("external_tool_path must not be empty")
    if not config.bucket:
        raise ConfigInvalid("bucket must not be empty")

    store_path = data.get("store_path")
    if store_path is not None and not isinstance(store_path, str):
        raise ConfigInvalid(f"store_path must be a string, got {store_path!r}")
    config.store_path = store_path

    backend = data.get("backend", "log" if store_path else "command")
    if backend not in BACKENDS:
        raise ConfigInvalid(f"backend must be one of {BACKENDS}, got {backend!r}")
    config.backend = backend

    timeout = data.get("decode_timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ConfigInvalid(f"decode_timeout must be a number, got {timeout!r}")
        if timeout <= 0:
            raise ConfigInvalid(f"decode_timeout must be positive, got {timeout}")
        config.decode_timeout = float(timeout)

    logging_section = data.get("logging") or {}
    if not isinstance(logging_section, dict):
        raise ConfigInvalid("logging must be a mapping")
    config.logging = dict(logging_section)

    return config
