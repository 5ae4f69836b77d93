"""Load and save tab-grouper configuration."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from tab_grouper.config.schema import Config

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def get_data_dir() -> Path:
    """Return the tab-grouper data directory."""
    return Path.home() / ".tab-grouper"


def get_config_path() -> Path:
    """Return the default config file path."""
    return get_data_dir() / "config.json"


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _convert_keys(data: Any, convert) -> Any:
    if isinstance(data, dict):
        return {convert(str(key)): _convert_keys(value, convert) for key, value in data.items()}
    if isinstance(data, list):
        return [_convert_keys(item, convert) for item in data]
    return data


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from disk.

    Missing files yield defaults. Unreadable or invalid files are logged and
    also yield defaults so the sidebar can still start.
    """
    target = path or get_config_path()
    if not target.exists():
        return Config()

    try:
        raw = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Failed to read config {target}: {exc}; using defaults")
        return Config()

    if not isinstance(raw, dict):
        logger.warning(f"Config {target} is not a JSON object; using defaults")
        return Config()

    try:
        return Config.model_validate(_convert_keys(raw, camel_to_snake))
    except ValidationError as exc:
        logger.warning(f"Invalid config {target}: {exc}; using defaults")
        return Config()


def save_config(config: Config, path: Path | None = None) -> Path:
    """Persist configuration to disk using camelCase keys."""
    target = path or get_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    data = _convert_keys(config.model_dump(), snake_to_camel)
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return target
