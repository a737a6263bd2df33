"""File-backed storage for refillable containers and kits.

Layout:
    <config_dir>/
        containers.json   # containers keyed by "(x, y, z)|<world-uuid>"
        kits.json         # ordered list of kits

containers.json is watched and reloaded when edited externally; kits.json is
read at startup only.

Writes: whole-document save after every mutation, tmp file + rename under
flock(LOCK_EX). Each document has one lock shared by stores and the watcher.
"""

from chestrefill.config import ChestRefillConfig, init_config, load_config
from chestrefill.containers import ContainerStore
from chestrefill.document import JSONDocument
from chestrefill.errors import (
    DeserializationError,
    DuplicateKitError,
    InvalidWorldIdError,
    KeyCodecError,
    MalformedCoordinateError,
    MalformedKeyError,
    StorageError,
    StorageIOError,
    StoreResult,
)
from chestrefill.keys import decode_key, encode_key
from chestrefill.kits import KitStore
from chestrefill.models import ContainerLocation, Kit, RefillableContainer, RefillableItem
from chestrefill.storage import JSONStorage
from chestrefill.watcher import ContainerFileWatcher

__all__ = [
    "ChestRefillConfig",
    "ContainerFileWatcher",
    "ContainerLocation",
    "ContainerStore",
    "DeserializationError",
    "DuplicateKitError",
    "InvalidWorldIdError",
    "JSONDocument",
    "JSONStorage",
    "KeyCodecError",
    "Kit",
    "KitStore",
    "MalformedCoordinateError",
    "MalformedKeyError",
    "RefillableContainer",
    "RefillableItem",
    "StorageError",
    "StorageIOError",
    "StoreResult",
    "decode_key",
    "encode_key",
    "init_config",
    "load_config",
]
