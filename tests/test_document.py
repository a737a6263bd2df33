from __future__ import annotations

import json
from pathlib import Path

import pytest

from chestrefill.document import JSONDocument
from chestrefill.errors import DeserializationError


def test_load_creates_missing_file(tmp_path: Path):
    doc = JSONDocument(tmp_path / "sub" / "containers.json")
    doc.load()
    assert doc.path.exists()
    assert doc.keys() == []


def test_set_autovivifies_and_save_round_trips(tmp_path: Path):
    doc = JSONDocument(tmp_path / "doc.json")
    doc.load()
    doc.set("a", "b", "c", value=5)
    doc.save()

    assert json.loads(doc.path.read_text()) == {"a": {"b": {"c": 5}}}
    assert not (tmp_path / "doc.json.tmp").exists()

    other = JSONDocument(doc.path)
    other.load()
    assert other.get("a", "b", "c") == 5


def test_set_replaces_non_object_intermediate(tmp_path: Path):
    doc = JSONDocument(tmp_path / "doc.json")
    doc.load()
    doc.set("a", value=1)
    doc.set("a", "b", value=2)
    assert doc.get("a") == {"b": 2}


def test_get_default_for_missing_or_scalar_path(tmp_path: Path):
    doc = JSONDocument(tmp_path / "doc.json")
    doc.load()
    doc.set("a", value=1)
    assert doc.get("missing", default="x") == "x"
    assert doc.get("a", "b") is None


def test_remove(tmp_path: Path):
    doc = JSONDocument(tmp_path / "doc.json")
    doc.load()
    doc.set("a", "b", value=1)
    assert doc.remove("a", "b") is True
    assert doc.remove("a", "b") is False
    assert doc.get("a") == {}


def test_load_rejects_invalid_json_and_keeps_tree(tmp_path: Path):
    path = tmp_path / "doc.json"
    doc = JSONDocument(path)
    doc.load()
    doc.set("kept", value=True)

    path.write_text("{not json")
    with pytest.raises(DeserializationError):
        doc.load()
    assert doc.get("kept") is True


def test_load_rejects_non_object_top_level(tmp_path: Path):
    path = tmp_path / "doc.json"
    path.write_text("[1, 2]")
    with pytest.raises(DeserializationError):
        JSONDocument(path).load()


def test_is_stale_ignores_own_saves(tmp_path: Path):
    path = tmp_path / "doc.json"
    doc = JSONDocument(path)
    doc.load()
    assert not doc.is_stale()

    doc.set("a", value=1)
    doc.save()
    assert not doc.is_stale()

    path.write_text(json.dumps({"a": 1, "external": "edit"}))
    assert doc.is_stale()
