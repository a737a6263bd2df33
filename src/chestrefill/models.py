"""Data models for the container and kit stores."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from chestrefill.errors import DeserializationError


@dataclass(frozen=True)
class ContainerLocation:
    """Block position plus world id. Only ever used as a key."""

    x: int
    y: int
    z: int
    world_id: uuid.UUID

    def __post_init__(self) -> None:
        if isinstance(self.world_id, str):
            object.__setattr__(self, "world_id", uuid.UUID(self.world_id))

    @property
    def position(self) -> tuple[int, int, int]:
        return (self.x, self.y, self.z)


@dataclass
class RefillableItem:
    """One item placed into a container on refill.

    ``item`` is the serialized item stack. It is passed through untouched.
    """

    item: dict[str, Any]
    slot: int = 0
    chance: float = 1.0       # 0..1, probability the item is placed

    @classmethod
    def from_dict(cls, d: Any) -> RefillableItem:
        if not isinstance(d, Mapping) or not isinstance(d.get("item"), Mapping):
            msg = f"not an item record: {d!r}"
            raise DeserializationError(msg)
        try:
            return cls(
                item=dict(d["item"]),
                slot=int(d.get("slot", 0)),
                chance=float(d.get("chance", 1.0)),
            )
        except (TypeError, ValueError) as exc:
            msg = f"bad item record: {d!r}"
            raise DeserializationError(msg) from exc

    def to_dict(self) -> dict[str, Any]:
        return {"item": dict(self.item), "slot": self.slot, "chance": self.chance}


@dataclass
class RefillableContainer:
    """A container whose contents are regenerated every ``restore_time`` seconds."""

    location: ContainerLocation
    name: str | None = None
    container_block_type: str | None = None
    items: list[RefillableItem] = field(default_factory=list)
    restore_time: int = 0
    one_item_at_time: bool = False
    replace_existing_items: bool = False
    hidden_if_no_items: bool = False
    hiding_block: str | None = None
    kit_name: str = ""                  # "" = no kit, own items are used
    required_permission: str = ""       # "" = anyone may open

    def __post_init__(self) -> None:
        if self.restore_time < 0:
            msg = f"restore_time must be non-negative, got {self.restore_time}"
            raise ValueError(msg)

    @property
    def has_kit(self) -> bool:
        return self.kit_name != ""


@dataclass
class Kit:
    """Named bundle of items that can stand in for a container's own items."""

    name: str
    items: list[RefillableItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Any) -> Kit:
        if not isinstance(d, Mapping) or not isinstance(d.get("name"), str):
            msg = f"not a kit record: {d!r}"
            raise DeserializationError(msg)
        raw_items = d.get("items") or []
        if not isinstance(raw_items, list):
            msg = f"kit {d['name']!r} has non-list items"
            raise DeserializationError(msg)
        return cls(name=d["name"], items=[RefillableItem.from_dict(i) for i in raw_items])

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "items": [i.to_dict() for i in self.items]}
