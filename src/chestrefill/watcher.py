"""Container file watcher: reloads containers.json when it is edited externally.

check_for_changes() is the periodic callback. It is driven either by
ContainerFileWatcher.start() (daemon thread, every `interval` seconds) or by
whatever scheduler the host already has.

Two ways of noticing a change:
    inotify   IN_CLOSE_WRITE / IN_MOVED_TO / IN_CREATE on the config dir (Linux)
    poll      stat() signature comparison

"auto" picks inotify on Linux and falls back to polling when inotify_simple
is missing or the kernel refuses another inotify instance.

Either way the document is only reloaded when its stat signature differs from
the one recorded at our own last load/save, so the store's own writes never
trigger a reload.

Run standalone:
    python -m chestrefill.watcher CONFIG_ROOT
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from chestrefill.config import load_config
from chestrefill.errors import StorageError

if TYPE_CHECKING:
    from chestrefill.document import JSONDocument

logger = logging.getLogger("chestrefill.watcher")

DEFAULT_INTERVAL = 2.5      # seconds, 50 server ticks

BACKENDS = ("auto", "inotify", "poll")


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class _InotifyBackend:
    """Non-blocking inotify reads on the document's directory."""

    def __init__(self, directory: Path) -> None:
        import inotify_simple  # type: ignore[import]

        self._inotify = inotify_simple.INotify()
        flags = inotify_simple.flags  # type: ignore[attr-defined]
        self._inotify.add_watch(str(directory), flags.CLOSE_WRITE | flags.MOVED_TO | flags.CREATE)

    def changed_names(self, document: JSONDocument) -> set[str]:  # noqa: ARG002
        return {event.name for event in self._inotify.read(timeout=0) if event.name}

    def close(self) -> None:
        self._inotify.close()


class _PollBackend:
    """Reports the document as changed whenever its stat signature moved."""

    def changed_names(self, document: JSONDocument) -> set[str]:
        return {document.path.name} if document.is_stale() else set()

    def close(self) -> None:
        pass


def _make_backend(backend: str, directory: Path) -> _InotifyBackend | _PollBackend:
    if backend == "poll" or (backend == "auto" and not sys.platform.startswith("linux")):
        return _PollBackend()
    if backend == "inotify":
        return _InotifyBackend(directory)
    try:
        return _InotifyBackend(directory)
    except (ImportError, OSError) as exc:
        logger.warning("inotify not available (%s), falling back to polling", exc)
        return _PollBackend()


# ---------------------------------------------------------------------------
# Watcher
# ---------------------------------------------------------------------------

class ContainerFileWatcher:
    """Keeps a document's in-memory tree in sync with external edits of its file.

    The backend is created on first use (start() or check_for_changes()), so a
    watcher that never runs holds no inotify descriptor.
    """

    def __init__(self, document: JSONDocument, interval: float = DEFAULT_INTERVAL, backend: str = "auto") -> None:
        if backend not in BACKENDS:
            msg = f"unknown watcher backend {backend!r} (expected one of {', '.join(BACKENDS)})"
            raise ValueError(msg)
        self.document = document
        self.interval = interval
        self.backend = backend
        self._backend: _InotifyBackend | _PollBackend | None = None
        self._reload_pending = False    # last reload failed, retry without a new event
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _ensure_backend(self) -> _InotifyBackend | _PollBackend:
        if self._backend is None:
            self.document.path.parent.mkdir(parents=True, exist_ok=True)
            self._backend = _make_backend(self.backend, self.document.path.parent)
            # events from before the backend existed were never seen
            self._reload_pending = True
        return self._backend

    def check_for_changes(self) -> bool:
        """One poll tick. Returns True if the document was reloaded."""
        changed = self.document.path.name in self._ensure_backend().changed_names(self.document)
        if not (changed or self._reload_pending):
            return False
        if not self.document.is_stale():
            self._reload_pending = False
            return False
        logger.info("Detected changes in %s file. Reloading!", self.document.path.name)
        try:
            self.document.load()
        except StorageError as exc:
            self._reload_pending = True
            logger.error("could not reload %s, keeping previous content: %s", self.document.path, exc)
            return False
        self._reload_pending = False
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.check_for_changes()
            except Exception:
                logger.exception("watcher tick failed")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._ensure_backend()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="chestrefill-watcher", daemon=True)
        self._thread.start()
        logger.info("watching %s every %.1fs", self.document.path, self.interval)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def close(self) -> None:
        self.stop()
        if self._backend is not None:
            self._backend.close()
            self._backend = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run_from_config(config_root: Path | None = None) -> None:
    """Load chestrefill.toml, open the storage and watch until interrupted."""
    from chestrefill.storage import JSONStorage

    cfg = load_config(config_root)
    logging.basicConfig(level=cfg.logging.level, format="%(asctime)s %(name)s %(message)s")
    storage = JSONStorage.from_config(cfg, watch=True)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("stopping")
    finally:
        storage.close()


if __name__ == "__main__":
    root = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    run_from_config(root)
