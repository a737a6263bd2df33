"""chestrefill CLI: inspect and edit the container/kit storage offline.

Commands:
    chestrefill init                         create chestrefill.toml + config dir
    chestrefill containers                   list stored containers
    chestrefill kits                         list kits
    chestrefill create-kit NAME [--items F]  add a kit (F = JSON list of items)
    chestrefill remove-kit NAME              remove a kit, unassign it from containers
    chestrefill remove LOCATION              remove a container
    chestrefill set-time LOCATION SECONDS    change a container's restore time
    chestrefill rename LOCATION NAME         change a container's name
    chestrefill assign-kit LOCATION KIT      assign a kit to a container
    chestrefill watch                        run the reload watcher in the foreground

LOCATION is a container key, e.g. "(12, 64, -30)|5c1f3c2e-8d7e-4a34-9f7a-0f5b3e0d2a11".
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from chestrefill.config import ChestRefillConfig, init_config, load_config
from chestrefill.errors import KeyCodecError, StorageError
from chestrefill.keys import decode_key, encode_key
from chestrefill.models import ContainerLocation, Kit, RefillableItem
from chestrefill.storage import JSONStorage
from chestrefill.watcher import run_from_config

if TYPE_CHECKING:
    from chestrefill.errors import StoreResult

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class LocationType(click.ParamType):
    name = "location"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> ContainerLocation:
        if isinstance(value, ContainerLocation):
            return value
        try:
            return decode_key(value)
        except KeyCodecError as exc:
            self.fail(str(exc), param, ctx)


LOCATION = LocationType()


def _load_cfg() -> ChestRefillConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _open_storage() -> JSONStorage:
    cfg = _load_cfg()
    try:
        return JSONStorage.from_config(cfg, watch=False)
    except StorageError as exc:
        raise click.ClickException(str(exc)) from exc


def _check(result: StoreResult, done: str) -> None:
    if not result:
        raise click.ClickException(str(result.error))
    click.echo(done)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="chestrefill")
def cli() -> None:
    """chestrefill: refillable container and kit storage."""


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
def init(root: str) -> None:
    """Create chestrefill.toml and the config directory."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("chestrefill.toml already exists, skipping init")

    cfg = load_config(root_path)
    cfg.ensure_dirs()
    try:
        JSONStorage.from_config(cfg, watch=False).close()
    except StorageError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Config dir : {cfg.storage.config_dir}")


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@cli.command()
def containers() -> None:
    """List stored containers."""
    with _open_storage() as storage:
        found = storage.containers.list_containers()
    if not found:
        click.echo("No containers.")
        return
    for c in found:
        source = f"kit {c.kit_name}" if c.has_kit else f"{len(c.items)} item(s)"
        label = c.name or "-"
        click.echo(f"{encode_key(c.location)}  {label}  every {c.restore_time}s  {source}")


@cli.command()
@click.argument("location", type=LOCATION)
def remove(location: ContainerLocation) -> None:
    """Remove the container at LOCATION."""
    with _open_storage() as storage:
        _check(storage.containers.remove(location), f"Removed {encode_key(location)}")


@cli.command("set-time")
@click.argument("location", type=LOCATION)
@click.argument("seconds", type=click.IntRange(min=0))
def set_time(location: ContainerLocation, seconds: int) -> None:
    """Set the restore time of the container at LOCATION."""
    with _open_storage() as storage:
        _check(storage.containers.update_restore_time(location, seconds), f"Restore time set to {seconds}s")


@cli.command()
@click.argument("location", type=LOCATION)
@click.argument("name")
def rename(location: ContainerLocation, name: str) -> None:
    """Rename the container at LOCATION."""
    with _open_storage() as storage:
        _check(storage.containers.rename(location, name), f"Renamed to {name}")


@cli.command("assign-kit")
@click.argument("location", type=LOCATION)
@click.argument("kit_name")
def assign_kit(location: ContainerLocation, kit_name: str) -> None:
    """Assign kit KIT_NAME to the container at LOCATION."""
    with _open_storage() as storage:
        if storage.kits.get_kit(kit_name) is None:
            raise click.ClickException(f"no kit named {kit_name!r}")
        _check(storage.containers.assign_kit(location, kit_name), f"Assigned kit {kit_name}")


# ---------------------------------------------------------------------------
# Kits
# ---------------------------------------------------------------------------


@cli.command()
def kits() -> None:
    """List kits."""
    with _open_storage() as storage:
        found = storage.kits.list_kits()
    if not found:
        click.echo("No kits.")
        return
    for kit in found:
        click.echo(f"{kit.name}  {len(kit.items)} item(s)")


@cli.command("create-kit")
@click.argument("name")
@click.option("--items", "items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON list of items")
def create_kit(name: str, items_file: Path | None) -> None:
    """Create kit NAME."""
    items: list[RefillableItem] = []
    if items_file is not None:
        try:
            raw = json.loads(items_file.read_text())
            if not isinstance(raw, list):
                raise click.ClickException(f"{items_file} must contain a JSON list")
            items = [RefillableItem.from_dict(i) for i in raw]
        except (json.JSONDecodeError, StorageError) as exc:
            raise click.ClickException(f"{items_file}: {exc}") from exc
    with _open_storage() as storage:
        _check(storage.kits.create_kit(Kit(name=name, items=items)), f"Created kit {name} ({len(items)} item(s))")


@cli.command("remove-kit")
@click.argument("name")
def remove_kit(name: str) -> None:
    """Remove kit NAME and unassign it from every container."""
    with _open_storage() as storage:
        _check(storage.kits.remove_kit(name), f"Removed kit {name}")


# ---------------------------------------------------------------------------
# Watcher
# ---------------------------------------------------------------------------


@cli.command()
def watch() -> None:
    """Watch containers.json and reload on external edits (Ctrl-C to stop)."""
    cfg = _load_cfg()
    run_from_config(cfg.root)
