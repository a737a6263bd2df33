from __future__ import annotations

import json

from chestrefill.errors import DuplicateKitError, StorageIOError
from chestrefill.models import ContainerLocation, Kit

from conftest import WORLD, make_container, make_item


def test_create_and_list(storage):
    item_a, item_b = make_item("minecraft:apple"), make_item("minecraft:bread", slot=1)
    assert storage.kits.create_kit(Kit("basic", [item_a, item_b]))

    assert storage.kits.list_kits() == [Kit("basic", [item_a, item_b])]
    assert json.loads(storage.kits_document.path.read_text()) == {
        "kits": [{"name": "basic", "items": [item_a.to_dict(), item_b.to_dict()]}],
    }


def test_kits_keep_insertion_order(storage):
    for name in ("b", "a", "c"):
        storage.kits.create_kit(Kit(name))
    assert [k.name for k in storage.kits.list_kits()] == ["b", "a", "c"]


def test_duplicate_kit_rejected(storage):
    assert storage.kits.create_kit(Kit("basic"))
    result = storage.kits.create_kit(Kit("basic", [make_item("minecraft:stone")]))

    assert not result
    assert isinstance(result.error, DuplicateKitError)
    assert len(storage.kits.list_kits()) == 1


def test_get_kit(storage):
    storage.kits.create_kit(Kit("basic"))
    assert storage.kits.get_kit("basic") == Kit("basic")
    assert storage.kits.get_kit("Basic") is None


def test_unreadable_kit_list_is_empty(storage, caplog):
    storage.kits_document.set("kits", value=[{"name": "ok"}, {"items": []}])
    assert storage.kits.list_kits() == []
    assert "could not read kits" in caplog.text


def test_remove_kit_cascades_to_containers(storage):
    a = make_container(x=1, kit_name="warrior")
    b = make_container(x=2, kit_name="")
    storage.containers.add_or_update(a)
    storage.containers.add_or_update(b)
    storage.kits.create_kit(Kit("warrior", [make_item("minecraft:iron_sword")]))
    storage.kits.create_kit(Kit("Warrior"))

    assert storage.kits.remove_kit("warrior")

    assert [k.name for k in storage.kits.list_kits()] == ["Warrior"]
    assert storage.containers.get(a.location).kit_name == ""
    assert storage.containers.get(b.location).kit_name == ""
    assert storage.containers.get(b.location).items == b.items

    raw = json.loads(storage.containers_document.path.read_text())
    assert all(entry["kit"] == "" for entry in raw["chestrefill"]["refillable-containers"].values())


def test_remove_unknown_kit_is_noop(storage):
    storage.kits.create_kit(Kit("basic"))
    assert storage.kits.remove_kit("missing")
    assert [k.name for k in storage.kits.list_kits()] == ["basic"]


def test_cascade_failure_leaves_kit_removed(storage, monkeypatch):
    container = make_container(kit_name="basic")
    storage.containers.add_or_update(container)
    storage.kits.create_kit(Kit("basic"))

    def broken_save():
        raise StorageIOError("read-only file system")

    monkeypatch.setattr(storage.containers_document, "save", broken_save)
    result = storage.kits.remove_kit("basic")

    assert not result
    assert isinstance(result.error, StorageIOError)
    assert storage.kits.list_kits() == []


def test_basic_kit_scenario(storage):
    item_a, item_b = make_item("minecraft:apple"), make_item("minecraft:bread")
    storage.kits.create_kit(Kit("basic", [item_a, item_b]))
    assert storage.kits.list_kits() == [Kit("basic", [item_a, item_b])]

    location = ContainerLocation(1, 2, 3, WORLD)
    storage.containers.add_or_update(make_container(kit_name="basic"))
    stored = storage.containers.get(location)
    assert stored.kit_name == "basic"
    assert stored.items == []

    storage.kits.remove_kit("basic")
    assert storage.containers.get(location).kit_name == ""
