"""ContainerStore: refillable containers in containers.json.

Layout:
    {
      "chestrefill": {
        "refillable-containers": {
          "(x, y, z)|<world-uuid>": {
            "name": ..., "container-block-type": ..., "kit": ..., "items": [...],
            "time": ..., "one-item-at-time": ..., "replace-existing-items": ...,
            "hidden-if-no-items": ..., "hiding-block": ..., "required-permission": ...
          }
        }
      }
    }

Every write is one transaction: mutate the tree, save the whole document.
Writes return a StoreResult and never raise; reads return [] / None on failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from chestrefill.errors import DeserializationError, KeyCodecError, StorageError, StoreResult
from chestrefill.keys import decode_key, encode_key
from chestrefill.models import ContainerLocation, RefillableContainer, RefillableItem

if TYPE_CHECKING:
    from chestrefill.document import JSONDocument

logger = logging.getLogger("chestrefill.containers")

CONTAINERS_PATH = ("chestrefill", "refillable-containers")

NAME = "name"
BLOCK_TYPE = "container-block-type"
KIT = "kit"
ITEMS = "items"
TIME = "time"
ONE_ITEM_AT_TIME = "one-item-at-time"
REPLACE_EXISTING_ITEMS = "replace-existing-items"
HIDDEN_IF_NO_ITEMS = "hidden-if-no-items"
HIDING_BLOCK = "hiding-block"
REQUIRED_PERMISSION = "required-permission"


def _failed(message: str, exc: Exception) -> StoreResult:
    logger.error("%s: %s", message, exc)
    error = exc if isinstance(exc, StorageError) else StorageError(str(exc))
    return StoreResult.failure(error)


# ---------------------------------------------------------------------------
# Field coercion for the read path
# ---------------------------------------------------------------------------

def _opt_str(entry: dict[str, Any], key: str) -> str | None:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        msg = f"{key!r} must be a string, got {value!r}"
        raise DeserializationError(msg)
    return value


def _str(entry: dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        msg = f"{key!r} must be a string, got {value!r}"
        raise DeserializationError(msg)
    return str(value)


def _int(entry: dict[str, Any], key: str) -> int:
    value = entry.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        msg = f"{key!r} must be an integer, got {value!r}"
        raise DeserializationError(msg)
    try:
        return int(value)
    except ValueError as exc:
        msg = f"{key!r} must be an integer, got {value!r}"
        raise DeserializationError(msg) from exc


def _bool(entry: dict[str, Any], key: str) -> bool:
    value = entry.get(key)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    msg = f"{key!r} must be a boolean, got {value!r}"
    raise DeserializationError(msg)


def _items(entry: dict[str, Any]) -> list[RefillableItem]:
    value = entry.get(ITEMS)
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"{ITEMS!r} must be a list, got {value!r}"
        raise DeserializationError(msg)
    return [RefillableItem.from_dict(i) for i in value]


class ContainerStore:
    """Refillable containers keyed by composite location key."""

    def __init__(self, document: JSONDocument) -> None:
        self.document = document

    def _path(self, location: ContainerLocation, *fields: str) -> tuple[str, ...]:
        return (*CONTAINERS_PATH, encode_key(location), *fields)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def add_or_update(self, container: RefillableContainer) -> StoreResult:
        """Write every field of container at its location, replacing any previous entry."""
        items = [] if container.has_kit else [i.to_dict() for i in container.items]
        entry = {
            NAME: container.name,
            BLOCK_TYPE: container.container_block_type,
            KIT: container.kit_name,
            ITEMS: items,
            TIME: container.restore_time,
            ONE_ITEM_AT_TIME: container.one_item_at_time,
            REPLACE_EXISTING_ITEMS: container.replace_existing_items,
            HIDDEN_IF_NO_ITEMS: container.hidden_if_no_items,
            HIDING_BLOCK: container.hiding_block,
            REQUIRED_PERMISSION: container.required_permission,
        }
        try:
            with self.document.lock:
                self.document.set(*self._path(container.location), value=entry)
                self.document.save()
        except Exception as exc:
            return _failed(f"could not add/update container at {container.location}", exc)
        return StoreResult.success()

    def remove(self, location: ContainerLocation) -> StoreResult:
        """Delete the container at location. Removing an absent one still succeeds."""
        try:
            with self.document.lock:
                self.document.remove(*self._path(location))
                self.document.save()
        except Exception as exc:
            return _failed(f"could not remove container at {location}", exc)
        return StoreResult.success()

    def _set_field(self, location: ContainerLocation, field_name: str, value: Any) -> StoreResult:
        # Blind write: an unknown location gets a sparse entry.
        try:
            with self.document.lock:
                self.document.set(*self._path(location, field_name), value=value)
                self.document.save()
        except Exception as exc:
            return _failed(f"could not set {field_name!r} of container at {location} to {value!r}", exc)
        return StoreResult.success()

    def update_restore_time(self, location: ContainerLocation, seconds: int) -> StoreResult:
        if seconds < 0:
            msg = f"restore time must be non-negative, got {seconds}"
            return _failed(f"could not set restore time of container at {location}", ValueError(msg))
        return self._set_field(location, TIME, seconds)

    def rename(self, location: ContainerLocation, name: str) -> StoreResult:
        return self._set_field(location, NAME, name)

    def assign_kit(self, location: ContainerLocation, kit_name: str) -> StoreResult:
        return self._set_field(location, KIT, kit_name)

    def clear_kit_references(self, kit_name: str) -> StoreResult:
        """Reset ``kit`` to "" on every container using kit_name, then save."""
        try:
            with self.document.lock:
                cleared = 0
                for key in self.document.keys(*CONTAINERS_PATH):
                    value = self.document.get(*CONTAINERS_PATH, key, KIT)
                    if value is not None and str(value) == kit_name:
                        self.document.set(*CONTAINERS_PATH, key, KIT, value="")
                        cleared += 1
                self.document.save()
        except Exception as exc:
            return _failed(f"could not clear kit {kit_name!r} from containers", exc)
        if cleared:
            logger.info("kit %r unassigned from %d container(s)", kit_name, cleared)
        return StoreResult.success()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_locations(self) -> list[ContainerLocation]:
        """Decode every stored key.

        Keys that fail to decode, or are not in the exact form encode_key()
        writes, are logged and skipped.
        """
        locations: list[ContainerLocation] = []
        with self.document.lock:
            keys = self.document.keys(*CONTAINERS_PATH)
        for key in keys:
            try:
                locations.append(decode_key(key, strict=True))
            except KeyCodecError as exc:
                logger.warning("skipping container with bad key %r: %s", key, exc)
        return locations

    def list_containers(self) -> list[RefillableContainer]:
        containers: list[RefillableContainer] = []
        for location in self.list_locations():
            container = self.get(location)
            if container is not None:
                containers.append(container)
        return containers

    def get(self, location: ContainerLocation) -> RefillableContainer | None:
        """Materialize the container at location, or None if absent or unreadable.

        Missing fields take defaults (no items, time 0, flags off, no kit).
        Any bad field drops the whole record.
        """
        try:
            with self.document.lock:
                entry = self.document.get(*self._path(location))
                if entry is None:
                    return None
                if not isinstance(entry, dict):
                    msg = f"entry is not an object: {entry!r}"
                    raise DeserializationError(msg)
                return self._materialize(location, entry)
        except (StorageError, ValueError) as exc:
            logger.error("could not read container at %s: %s", location, exc)
            return None

    @staticmethod
    def _materialize(location: ContainerLocation, entry: dict[str, Any]) -> RefillableContainer:
        return RefillableContainer(
            location=location,
            name=_opt_str(entry, NAME),
            container_block_type=_opt_str(entry, BLOCK_TYPE),
            items=_items(entry),
            restore_time=_int(entry, TIME),
            one_item_at_time=_bool(entry, ONE_ITEM_AT_TIME),
            replace_existing_items=_bool(entry, REPLACE_EXISTING_ITEMS),
            hidden_if_no_items=_bool(entry, HIDDEN_IF_NO_ITEMS),
            hiding_block=_opt_str(entry, HIDING_BLOCK),
            kit_name=_str(entry, KIT),
            required_permission=_str(entry, REQUIRED_PERMISSION),
        )
