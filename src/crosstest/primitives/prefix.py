"""Output prefixes that tie ciphertexts, tags and signatures to a key id."""
from __future__ import annotations

from typing import Final

from ..keyset.models import Key, OutputPrefixType

PREFIX_SIZE: Final[int] = 5
TINK_START_BYTE: Final[int] = 0x01
LEGACY_START_BYTE: Final[int] = 0x00
LEGACY_SUFFIX: Final[bytes] = b"\x00"


def output_prefix(key_id: int, prefix_type: int) -> bytes:
    if prefix_type == OutputPrefixType.TINK:
        return bytes([TINK_START_BYTE]) + key_id.to_bytes(4, "big")
    if prefix_type in (OutputPrefixType.LEGACY, OutputPrefixType.CRUNCHY):
        return bytes([LEGACY_START_BYTE]) + key_id.to_bytes(4, "big")
    return b""


def key_prefix(key: Key) -> bytes:
    return output_prefix(key.key_id, key.output_prefix_type)


def legacy_data(prefix_type: int, data: bytes) -> bytes:
    """LEGACY MACs and signatures cover ``data || 0x00``."""
    if prefix_type == OutputPrefixType.LEGACY:
        return data + LEGACY_SUFFIX
    return data


__all__ = ["PREFIX_SIZE", "output_prefix", "key_prefix", "legacy_data"]
