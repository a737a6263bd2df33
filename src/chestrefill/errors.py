"""Storage error taxonomy and the result type returned by store writes."""

from __future__ import annotations

from dataclasses import dataclass


class StorageError(Exception):
    """Base class for every failure raised inside the storage layer."""


class StorageIOError(StorageError):
    """Creating, reading or writing a backing file failed."""


class KeyCodecError(StorageError):
    """A persisted container key could not be decoded."""


class MalformedKeyError(KeyCodecError):
    """Key does not split into exactly a coordinate part and a world part."""


class InvalidWorldIdError(KeyCodecError):
    """World part of a key is not a UUID."""


class MalformedCoordinateError(KeyCodecError):
    """Coordinate part of a key is not three integers."""


class DeserializationError(StorageError):
    """Document content does not map onto a record (or back)."""


class DuplicateKitError(StorageError):
    """A kit with the same name already exists."""


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a store write. Truthy on success."""

    ok: bool
    error: StorageError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> StoreResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: StorageError) -> StoreResult:
        return cls(ok=False, error=error)
