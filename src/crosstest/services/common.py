"""Helpers shared by the per-family services."""
from __future__ import annotations

from typing import Any

from ..families import Family
from ..keyset.handle import KeysetHandle


def primitive_from_keyset(keyset: bytes, family: Family) -> Any:
    """Materialize a binary keyset and build its ``family`` capability."""
    return KeysetHandle.read(keyset).primitive(family)


def create(keyset: bytes, family: Family) -> bool:
    primitive_from_keyset(keyset, family)
    return True


__all__ = ["primitive_from_keyset", "create"]
