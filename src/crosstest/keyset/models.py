"""Keyset data model shared by the codecs, the handle and the services."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Tuple


class KeyStatus(IntEnum):
    UNKNOWN_STATUS = 0
    ENABLED = 1
    DISABLED = 2
    DESTROYED = 3


class OutputPrefixType(IntEnum):
    UNKNOWN_PREFIX = 0
    TINK = 1
    LEGACY = 2
    RAW = 3
    CRUNCHY = 4


class KeyMaterialType(IntEnum):
    UNKNOWN_KEYMATERIAL = 0
    SYMMETRIC = 1
    ASYMMETRIC_PRIVATE = 2
    ASYMMETRIC_PUBLIC = 3
    REMOTE = 4


class KeysetEncoding(str, Enum):
    BINARY = "binary"
    JSON = "json"


SECRET_MATERIAL = frozenset(
    {
        KeyMaterialType.UNKNOWN_KEYMATERIAL,
        KeyMaterialType.SYMMETRIC,
        KeyMaterialType.ASYMMETRIC_PRIVATE,
    }
)


def _enum_or_int(enum_type: type[IntEnum], value: int) -> int:
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(frozen=True, slots=True)
class KeyData:
    type_url: str
    value: bytes
    key_material_type: int = KeyMaterialType.UNKNOWN_KEYMATERIAL

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "key_material_type", _enum_or_int(KeyMaterialType, self.key_material_type)
        )

    @property
    def is_secret(self) -> bool:
        return self.key_material_type in SECRET_MATERIAL


@dataclass(frozen=True, slots=True)
class Key:
    key_data: Optional[KeyData]
    status: int
    key_id: int
    output_prefix_type: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _enum_or_int(KeyStatus, self.status))
        object.__setattr__(
            self, "output_prefix_type", _enum_or_int(OutputPrefixType, self.output_prefix_type)
        )


@dataclass(frozen=True, slots=True)
class Keyset:
    primary_key_id: int
    keys: Tuple[Key, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))

    def key(self, key_id: int) -> Optional[Key]:
        for key in self.keys:
            if key.key_id == key_id:
                return key
        return None

    def info(self) -> "KeysetInfo":
        return KeysetInfo(
            primary_key_id=self.primary_key_id,
            key_info=tuple(
                KeyInfo(
                    type_url=key.key_data.type_url if key.key_data else "",
                    status=key.status,
                    key_id=key.key_id,
                    output_prefix_type=key.output_prefix_type,
                )
                for key in self.keys
            ),
        )


@dataclass(frozen=True, slots=True)
class KeyTemplate:
    type_url: str
    value: bytes
    output_prefix_type: int

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "output_prefix_type", _enum_or_int(OutputPrefixType, self.output_prefix_type)
        )


@dataclass(frozen=True, slots=True)
class KeyInfo:
    """Metadata for one key; never carries key material"""

    type_url: str
    status: int
    key_id: int
    output_prefix_type: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _enum_or_int(KeyStatus, self.status))
        object.__setattr__(
            self, "output_prefix_type", _enum_or_int(OutputPrefixType, self.output_prefix_type)
        )


@dataclass(frozen=True, slots=True)
class KeysetInfo:
    primary_key_id: int
    key_info: Tuple[KeyInfo, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "key_info", tuple(self.key_info))

    def as_dict(self) -> dict:
        return {
            "primary_key_id": self.primary_key_id,
            "key_info": [
                {
                    "type_url": info.type_url,
                    "status": _enum_name(info.status),
                    "key_id": info.key_id,
                    "output_prefix_type": _enum_name(info.output_prefix_type),
                }
                for info in self.key_info
            ],
        }


@dataclass(frozen=True, slots=True)
class EncryptedKeyset:
    encrypted_keyset: bytes
    keyset_info: Optional[KeysetInfo] = None


def _enum_name(value: int) -> str | int:
    return value.name if isinstance(value, IntEnum) else value


__all__ = [
    "KeyStatus",
    "OutputPrefixType",
    "KeyMaterialType",
    "KeysetEncoding",
    "SECRET_MATERIAL",
    "KeyData",
    "Key",
    "Keyset",
    "KeyTemplate",
    "KeyInfo",
    "KeysetInfo",
    "EncryptedKeyset",
]
