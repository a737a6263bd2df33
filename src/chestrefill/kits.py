"""KitStore: named item bundles in kits.json.

Layout:
    {"kits": [{"name": "basic", "items": [{"item": {...}, "slot": 0, "chance": 1.0}]}]}

Removing a kit also unassigns it from every container. The two files are
saved one after the other, not atomically: if the containers save fails the
kit stays removed and the failure is logged and returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from chestrefill.errors import DeserializationError, DuplicateKitError, StorageError, StoreResult
from chestrefill.models import Kit

if TYPE_CHECKING:
    from chestrefill.containers import ContainerStore
    from chestrefill.document import JSONDocument

logger = logging.getLogger("chestrefill.kits")

KITS_KEY = "kits"


class KitStore:
    """Kits, in insertion order."""

    def __init__(self, document: JSONDocument, containers: ContainerStore) -> None:
        self.document = document
        self.containers = containers

    def _raw_kits(self) -> list[Any]:
        raw = self.document.get(KITS_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            msg = f"{KITS_KEY!r} must be a list, got {type(raw).__name__}"
            raise DeserializationError(msg)
        return raw

    def _read_kits(self) -> list[Kit]:
        return [Kit.from_dict(k) for k in self._raw_kits()]

    def list_kits(self) -> list[Kit]:
        """All kits. An unreadable kit list yields []."""
        try:
            with self.document.lock:
                return self._read_kits()
        except StorageError as exc:
            logger.error("could not read kits from %s: %s", self.document.path, exc)
            return []

    def get_kit(self, name: str) -> Kit | None:
        for kit in self.list_kits():
            if kit.name == name:
                return kit
        return None

    def create_kit(self, kit: Kit) -> StoreResult:
        try:
            with self.document.lock:
                raw = self._raw_kits()
                if any(isinstance(k, dict) and k.get("name") == kit.name for k in raw):
                    msg = f"kit {kit.name!r} already exists"
                    raise DuplicateKitError(msg)
                self.document.set(KITS_KEY, value=[*raw, kit.to_dict()])
                self.document.save()
        except Exception as exc:
            logger.error("could not add kit %r: %s", kit.name, exc)
            return StoreResult.failure(exc if isinstance(exc, StorageError) else StorageError(str(exc)))
        return StoreResult.success()

    def remove_kit(self, name: str) -> StoreResult:
        """Drop every kit named ``name`` (exact match), then unassign it from containers."""
        try:
            with self.document.lock:
                kits = self._read_kits()
                kept = [k for k in kits if k.name != name]
                self.document.set(KITS_KEY, value=[k.to_dict() for k in kept])
                self.document.save()
        except Exception as exc:
            logger.error("could not remove kit %r: %s", name, exc)
            return StoreResult.failure(exc if isinstance(exc, StorageError) else StorageError(str(exc)))

        if len(kept) != len(kits):
            logger.info("kit %r removed", name)

        result = self.containers.clear_kit_references(name)
        if not result:
            logger.error("kit %r was removed but containers still reference it", name)
        return result
