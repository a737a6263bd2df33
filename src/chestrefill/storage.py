"""JSONStorage: both stores and the containers watcher for one config dir.

    storage = JSONStorage(config_dir)
    storage.containers.add_or_update(container)
    storage.kits.create_kit(kit)
    storage.close()
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from chestrefill.config import CONTAINERS_FILENAME, KITS_FILENAME
from chestrefill.containers import ContainerStore
from chestrefill.document import JSONDocument
from chestrefill.kits import KitStore
from chestrefill.watcher import DEFAULT_INTERVAL, ContainerFileWatcher

if TYPE_CHECKING:
    from types import TracebackType

    from chestrefill.config import ChestRefillConfig


class JSONStorage:
    """Owns containers.json and kits.json, their stores, and the reload watcher.

    Opening creates missing files. A document that exists but cannot be
    parsed raises its StorageError here, before anything could overwrite it.
    """

    def __init__(
        self,
        config_dir: Path | str,
        *,
        watch: bool = True,
        interval: float = DEFAULT_INTERVAL,
        backend: str = "auto",
    ) -> None:
        self.config_dir = Path(config_dir)
        self.containers_document = JSONDocument(self.config_dir / CONTAINERS_FILENAME)
        self.kits_document = JSONDocument(self.config_dir / KITS_FILENAME)
        self.containers_document.load()
        self.kits_document.load()

        self.containers = ContainerStore(self.containers_document)
        self.kits = KitStore(self.kits_document, self.containers)
        self.watcher = ContainerFileWatcher(self.containers_document, interval=interval, backend=backend)
        if watch:
            self.watcher.start()

    @classmethod
    def from_config(cls, cfg: ChestRefillConfig, *, watch: bool | None = None) -> JSONStorage:
        return cls(
            cfg.storage.config_dir,
            watch=cfg.watcher.enabled if watch is None else watch,
            interval=cfg.watcher.interval,
            backend=cfg.watcher.backend,
        )

    def close(self) -> None:
        self.watcher.close()

    def __enter__(self) -> JSONStorage:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
