from __future__ import annotations

import uuid
from pathlib import Path

import pytest

from chestrefill.models import ContainerLocation, RefillableContainer, RefillableItem
from chestrefill.storage import JSONStorage

WORLD = uuid.UUID("5c1f3c2e-8d7e-4a34-9f7a-0f5b3e0d2a11")


def make_item(item_id: str, count: int = 1, slot: int = 0) -> RefillableItem:
    return RefillableItem(item={"type": item_id, "count": count}, slot=slot)


def make_container(x: int = 1, y: int = 2, z: int = 3, **kwargs) -> RefillableContainer:
    defaults = {
        "name": "loot",
        "container_block_type": "minecraft:chest",
        "items": [make_item("minecraft:apple", 3), make_item("minecraft:bread", 1, slot=4)],
        "restore_time": 60,
        "one_item_at_time": True,
        "replace_existing_items": False,
        "hidden_if_no_items": True,
        "hiding_block": "minecraft:air",
        "kit_name": "",
        "required_permission": "chestrefill.loot",
    }
    defaults.update(kwargs)
    return RefillableContainer(location=ContainerLocation(x, y, z, WORLD), **defaults)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def storage(config_dir: Path):
    s = JSONStorage(config_dir, watch=False, backend="poll")
    yield s
    s.close()
