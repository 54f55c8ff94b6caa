from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

__all__ = [
    "ConfigError",
    "ShiritoriConfig",
    "load_config",
]

RESOURCE_DIR_ENV = "SHIRITORI_RESOURCE_DIR"
STATE_FILE_ENV = "SHIRITORI_STATE_FILE"
READING_DICTS_ENV = "SHIRITORI_READING_DICTS"
REPLACE_DICT_ENV = "SHIRITORI_REPLACE_DICT"
LOCK_TIMEOUT_ENV = "SHIRITORI_LOCK_TIMEOUT"

STATE_FILENAME = "last_kana.txt"


class ConfigError(RuntimeError):
    """Raised when the environment holds an unusable configuration value."""


def _default_resource_dir() -> Path:
    return Path.home() / ".local" / "share" / "shiritori"


@dataclass(slots=True)
class ShiritoriConfig:
    resource_dir: Path = field(default_factory=_default_resource_dir)
    state_path: Path | None = None
    reading_dict_paths: list[Path] = field(default_factory=list)
    replace_dict_path: Path | None = None
    lock_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.state_path is None:
            self.state_path = self.resource_dir / STATE_FILENAME


def _parse_timeout(raw: str) -> float | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{LOCK_TIMEOUT_ENV} must be a number of seconds, got {raw!r}.") from exc
    if value < 0:
        raise ConfigError(f"{LOCK_TIMEOUT_ENV} must not be negative, got {raw!r}.")
    return value


def load_config(env: Mapping[str, str] | None = None) -> ShiritoriConfig:
    """Build a configuration from ``SHIRITORI_*`` environment variables."""
    if env is None:
        env = os.environ
    resource_raw = env.get(RESOURCE_DIR_ENV)
    resource_dir = Path(resource_raw).expanduser() if resource_raw else _default_resource_dir()

    state_raw = env.get(STATE_FILE_ENV)
    state_path = Path(state_raw).expanduser() if state_raw else None

    reading_dict_paths = [
        Path(item).expanduser()
        for item in env.get(READING_DICTS_ENV, "").split(os.pathsep)
        if item.strip()
    ]
    replace_raw = env.get(REPLACE_DICT_ENV)
    replace_dict_path = Path(replace_raw).expanduser() if replace_raw else None

    return ShiritoriConfig(
        resource_dir=resource_dir,
        state_path=state_path,
        reading_dict_paths=reading_dict_paths,
        replace_dict_path=replace_dict_path,
        lock_timeout=_parse_timeout(env.get(LOCK_TIMEOUT_ENV, "")),
    )
