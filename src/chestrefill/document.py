"""JSON document: one backing file, one in-memory tree.

    doc = JSONDocument(config_dir / "containers.json")
    doc.load()
    doc.set("chestrefill", "refillable-containers", key, "time", value=120)
    doc.save()

Reads take flock(LOCK_SH). save() writes <name>.tmp under flock(LOCK_EX)
and renames it over the backing file, so readers never see a partial write.

The tree is guarded by ``doc.lock`` (re-entrant). Stores hold it for a whole
read-modify-save transaction; load() takes it too, so a reload never
interleaves with a save.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from chestrefill.errors import DeserializationError, StorageIOError

logger = logging.getLogger("chestrefill.document")

_Signature = tuple[int, int, int]


def _signature(st: os.stat_result) -> _Signature:
    return (st.st_ino, st.st_size, st.st_mtime_ns)


class JSONDocument:
    """A JSON object tree backed by a single file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.lock = threading.RLock()
        self._root: dict[str, Any] = {}
        self._signature: _Signature | None = None

    # ------------------------------------------------------------------
    # Disk
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory tree with the file's content.

        A missing file is created; an empty one is an empty tree. On failure
        the previous tree is kept.
        """
        with self.lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.touch(exist_ok=True)
                with self.path.open() as f:
                    fcntl.flock(f, fcntl.LOCK_SH)
                    text = f.read()
                    sig = _signature(os.fstat(f.fileno()))
            except OSError as exc:
                msg = f"could not read {self.path}: {exc}"
                raise StorageIOError(msg) from exc

            if not text.strip():
                tree: Any = {}
            else:
                try:
                    tree = json.loads(text)
                except json.JSONDecodeError as exc:
                    msg = f"{self.path} is not valid JSON: {exc}"
                    raise DeserializationError(msg) from exc
            if not isinstance(tree, dict):
                msg = f"{self.path}: top level must be an object, got {type(tree).__name__}"
                raise DeserializationError(msg)

            self._root = tree
            self._signature = sig
            logger.debug("loaded %s", self.path)

    def save(self) -> None:
        """Write the whole tree to disk atomically (tmp file + rename)."""
        with self.lock:
            try:
                text = json.dumps(self._root, indent=2)
            except (TypeError, ValueError) as exc:
                msg = f"could not serialize {self.path}: {exc}"
                raise DeserializationError(msg) from exc

            tmp = self.path.with_name(self.path.name + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with tmp.open("w") as f:
                    fcntl.flock(f, fcntl.LOCK_EX)
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                tmp.replace(self.path)
                self._signature = _signature(self.path.stat())
            except OSError as exc:
                msg = f"could not write {self.path}: {exc}"
                raise StorageIOError(msg) from exc

    def is_stale(self) -> bool:
        """True if the file changed since our last load() or save()."""
        try:
            sig = _signature(self.path.stat())
        except OSError:
            return False
        return sig != self._signature

    # ------------------------------------------------------------------
    # Tree access
    # ------------------------------------------------------------------

    def get(self, *path: str, default: Any = None) -> Any:
        node: Any = self._root
        for key in path:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def set(self, *path: str, value: Any) -> None:
        """Set the value at path, creating intermediate objects as needed."""
        if not path:
            msg = "set() needs at least one key"
            raise ValueError(msg)
        node = self._root
        for key in path[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[path[-1]] = value

    def remove(self, *path: str) -> bool:
        """Delete the value at path. Returns False if nothing was there."""
        parent = self.get(*path[:-1]) if len(path) > 1 else self._root
        if not path or not isinstance(parent, dict) or path[-1] not in parent:
            return False
        del parent[path[-1]]
        return True

    def keys(self, *path: str) -> list[str]:
        """Child keys of the object at path ([] if absent or not an object)."""
        node = self.get(*path)
        if not isinstance(node, dict):
            return []
        return list(node)
