from __future__ import annotations

from pathlib import Path

import pytest

from chestrefill.config import init_config, load_config
from chestrefill.storage import JSONStorage


def test_defaults_without_config_file(tmp_path: Path):
    cfg = load_config(tmp_path)
    assert cfg.root == tmp_path
    assert cfg.storage.config_dir == tmp_path / "config"
    assert cfg.storage.containers_path == tmp_path / "config" / "containers.json"
    assert cfg.storage.kits_path == tmp_path / "config" / "kits.json"
    assert cfg.watcher.enabled is True
    assert cfg.watcher.interval == 2.5
    assert cfg.watcher.backend == "auto"
    assert cfg.logging.level == "INFO"


def test_values_from_toml(tmp_path: Path):
    (tmp_path / "chestrefill.toml").write_text(
        '[storage]\nconfig_dir = "data/refill"\n\n'
        '[watcher]\nenabled = false\ninterval = 10\nbackend = "poll"\n\n'
        '[logging]\nlevel = "debug"\n'
    )
    cfg = load_config(tmp_path)
    assert cfg.storage.config_dir == tmp_path / "data" / "refill"
    assert cfg.watcher.enabled is False
    assert cfg.watcher.interval == 10.0
    assert cfg.watcher.backend == "poll"
    assert cfg.logging.level == "DEBUG"


def test_root_found_by_walking_up(tmp_path: Path, monkeypatch):
    init_config(tmp_path)
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert load_config().root == tmp_path


def test_init_config_refuses_overwrite(tmp_path: Path):
    init_config(tmp_path)
    with pytest.raises(FileExistsError):
        init_config(tmp_path)


def test_storage_from_config(tmp_path: Path):
    (tmp_path / "chestrefill.toml").write_text('[watcher]\nbackend = "poll"\n')
    cfg = load_config(tmp_path)
    with JSONStorage.from_config(cfg, watch=False) as storage:
        assert storage.containers_document.path == cfg.storage.containers_path
        assert storage.kits_document.path.exists()
        assert not storage.watcher.running
