"""Composite container keys.

A location is persisted as the map key ``"(x, y, z)|<world-uuid>"``, e.g.

    (12, 64, -30)|5c1f3c2e-8d7e-4a34-9f7a-0f5b3e0d2a11

The key is the literal JSON object key in containers.json, so the format
must not drift.
"""

from __future__ import annotations

import re
import uuid

from chestrefill.errors import InvalidWorldIdError, MalformedCoordinateError, MalformedKeyError
from chestrefill.models import ContainerLocation

_SEPARATOR = "|"
_INT_RE = re.compile(r"[+-]?[0-9]+")


def encode_key(location: ContainerLocation) -> str:
    x, y, z = location.position
    return f"({x}, {y}, {z}){_SEPARATOR}{location.world_id}"


def decode_key(key: str, *, strict: bool = False) -> ContainerLocation:
    """Parse a composite key back into a ContainerLocation.

    Parentheses, spaces and UUID spelling are forgiven unless ``strict``, in
    which case the key must be exactly what encode_key() produces.

    Raises MalformedKeyError, InvalidWorldIdError or MalformedCoordinateError.
    """
    parts = key.split(_SEPARATOR)
    if len(parts) != 2:
        msg = f"expected '<position>|<world>' but got {key!r}"
        raise MalformedKeyError(msg)
    position, world = parts

    try:
        world_id = uuid.UUID(world)
    except ValueError as exc:
        msg = f"invalid world id {world!r} in key {key!r}"
        raise InvalidWorldIdError(msg) from exc

    fields = position.replace("(", "").replace(")", "").replace(" ", "").split(",")
    if len(fields) != 3 or not all(_INT_RE.fullmatch(f) for f in fields):
        msg = f"invalid position {position!r} in key {key!r}"
        raise MalformedCoordinateError(msg)
    x, y, z = (int(f) for f in fields)
    location = ContainerLocation(x, y, z, world_id)
    if strict and encode_key(location) != key:
        msg = f"key {key!r} is not in canonical form {encode_key(location)!r}"
        raise MalformedKeyError(msg)
    return location
