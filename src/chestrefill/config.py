"""ChestRefillConfig: project-local config for the container/kit storage.

Default layout (all relative to the directory holding chestrefill.toml):

    chestrefill.toml
    config/
        containers.json
        kits.json

chestrefill.toml example:

    [storage]
    config_dir = "config"

    [watcher]
    enabled = true
    interval = 2.5        # seconds between checks of containers.json
    backend = "auto"      # auto | inotify | poll

    [logging]
    level = "INFO"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "chestrefill.toml"
_DEFAULT_CONFIG_DIR = "config"

CONTAINERS_FILENAME = "containers.json"
KITS_FILENAME = "kits.json"


@dataclass
class StorageConfig:
    config_dir: Path = field(default_factory=lambda: Path(_DEFAULT_CONFIG_DIR))

    @property
    def containers_path(self) -> Path:
        return self.config_dir / CONTAINERS_FILENAME

    @property
    def kits_path(self) -> Path:
        return self.config_dir / KITS_FILENAME


@dataclass
class WatcherConfig:
    enabled: bool = True
    interval: float = 2.5
    backend: str = "auto"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class ChestRefillConfig:
    """Resolved configuration."""

    root: Path                      # directory that contains chestrefill.toml
    storage: StorageConfig = field(default_factory=StorageConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def ensure_dirs(self) -> None:
        self.storage.config_dir.mkdir(parents=True, exist_ok=True)


def load_config(root: Path | str | None = None) -> ChestRefillConfig:
    """Load chestrefill.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    storage_section = raw.get("storage", {})
    watcher_section = raw.get("watcher", {})
    logging_section = raw.get("logging", {})

    return ChestRefillConfig(
        root=root_path,
        storage=StorageConfig(
            config_dir=root_path / storage_section.get("config_dir", _DEFAULT_CONFIG_DIR),
        ),
        watcher=WatcherConfig(
            enabled=bool(watcher_section.get("enabled", True)),
            interval=float(watcher_section.get("interval", 2.5)),
            backend=str(watcher_section.get("backend", "auto")),
        ),
        logging=LoggingConfig(
            level=str(logging_section.get("level", "INFO")).upper(),
        ),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for chestrefill.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path) -> Path:
    """Write a default chestrefill.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"{_CONFIG_FILENAME} already exists at {config_path}"
        raise FileExistsError(msg)

    content = """\
[storage]
config_dir = "config"   # holds containers.json and kits.json

[watcher]
enabled = true
# interval = 2.5        # seconds between checks of containers.json
# backend = "auto"      # auto | inotify (Linux) | poll

# [logging]
# level = "INFO"
"""
    config_path.write_text(content)
    return config_path
