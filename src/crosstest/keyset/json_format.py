"""JSON keyset encoding: camelCase fields, standard base64, enum names."""
from __future__ import annotations

import base64
import binascii
from enum import IntEnum
from typing import Annotated, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import DecodeError
from .models import (
    EncryptedKeyset,
    Key,
    KeyData,
    KeyInfo,
    KeyMaterialType,
    Keyset,
    KeysetInfo,
    KeyStatus,
    OutputPrefixType,
)


# Enum fields are int32 on the wire.
EnumValue = Annotated[int, Field(ge=-(2**31), le=2**31 - 1)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class KeyDataJSON(_CamelModel):
    type_url: str = ""
    value: str = ""
    key_material_type: str | EnumValue = "UNKNOWN_KEYMATERIAL"


class KeyJSON(_CamelModel):
    key_data: Optional[KeyDataJSON] = None
    status: str | EnumValue = "UNKNOWN_STATUS"
    key_id: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    output_prefix_type: str | EnumValue = "UNKNOWN_PREFIX"


class KeysetJSON(_CamelModel):
    primary_key_id: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    key: List[KeyJSON] = Field(default_factory=list)


class KeyInfoJSON(_CamelModel):
    type_url: str = ""
    status: str | EnumValue = "UNKNOWN_STATUS"
    key_id: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    output_prefix_type: str | EnumValue = "UNKNOWN_PREFIX"


class KeysetInfoJSON(_CamelModel):
    primary_key_id: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    key_info: List[KeyInfoJSON] = Field(default_factory=list)


class EncryptedKeysetJSON(_CamelModel):
    encrypted_keyset: str = ""
    keyset_info: Optional[KeysetInfoJSON] = None


def _name(value: int) -> str | int:
    return value.name if isinstance(value, IntEnum) else value


def _parse_enum(enum_type: Type[IntEnum], value: str | EnumValue) -> int:
    if isinstance(value, int):
        return value
    try:
        return enum_type[value]
    except KeyError:
        raise DecodeError(f"unknown {enum_type.__name__} {value!r}") from None


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise DecodeError(f"invalid base64 value: {exc}") from exc


def _validate(model: Type[_CamelModel], data: bytes | str) -> _CamelModel:
    try:
        return model.model_validate_json(data)
    except ValidationError as exc:
        raise DecodeError(f"invalid JSON keyset: {exc.error_count()} error(s)") from exc


def keyset_to_json(keyset: Keyset) -> str:
    document = KeysetJSON(
        primary_key_id=keyset.primary_key_id,
        key=[
            KeyJSON(
                key_data=KeyDataJSON(
                    type_url=key.key_data.type_url,
                    value=_b64encode(key.key_data.value),
                    key_material_type=_name(key.key_data.key_material_type),
                )
                if key.key_data is not None
                else None,
                status=_name(key.status),
                key_id=key.key_id,
                output_prefix_type=_name(key.output_prefix_type),
            )
            for key in keyset.keys
        ],
    )
    return document.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def keyset_from_json(data: bytes | str) -> Keyset:
    document = _validate(KeysetJSON, data)
    keys = []
    for item in document.key:  # type: ignore[attr-defined]
        key_data = None
        if item.key_data is not None:
            key_data = KeyData(
                type_url=item.key_data.type_url,
                value=_b64decode(item.key_data.value),
                key_material_type=_parse_enum(KeyMaterialType, item.key_data.key_material_type),
            )
        keys.append(
            Key(
                key_data=key_data,
                status=_parse_enum(KeyStatus, item.status),
                key_id=item.key_id,
                output_prefix_type=_parse_enum(OutputPrefixType, item.output_prefix_type),
            )
        )
    return Keyset(primary_key_id=document.primary_key_id, keys=tuple(keys))  # type: ignore[attr-defined]


def _info_to_json(info: KeysetInfo) -> KeysetInfoJSON:
    return KeysetInfoJSON(
        primary_key_id=info.primary_key_id,
        key_info=[
            KeyInfoJSON(
                type_url=item.type_url,
                status=_name(item.status),
                key_id=item.key_id,
                output_prefix_type=_name(item.output_prefix_type),
            )
            for item in info.key_info
        ],
    )


def _info_from_json(document: KeysetInfoJSON) -> KeysetInfo:
    return KeysetInfo(
        primary_key_id=document.primary_key_id,
        key_info=tuple(
            KeyInfo(
                type_url=item.type_url,
                status=_parse_enum(KeyStatus, item.status),
                key_id=item.key_id,
                output_prefix_type=_parse_enum(OutputPrefixType, item.output_prefix_type),
            )
            for item in document.key_info
        ),
    )


def encrypted_keyset_to_json(encrypted: EncryptedKeyset) -> str:
    document = EncryptedKeysetJSON(
        encrypted_keyset=_b64encode(encrypted.encrypted_keyset),
        keyset_info=_info_to_json(encrypted.keyset_info) if encrypted.keyset_info else None,
    )
    return document.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def encrypted_keyset_from_json(data: bytes | str) -> EncryptedKeyset:
    document = _validate(EncryptedKeysetJSON, data)
    info = document.keyset_info  # type: ignore[attr-defined]
    return EncryptedKeyset(
        encrypted_keyset=_b64decode(document.encrypted_keyset),  # type: ignore[attr-defined]
        keyset_info=_info_from_json(info) if info is not None else None,
    )


__all__ = [
    "keyset_to_json",
    "keyset_from_json",
    "encrypted_keyset_to_json",
    "encrypted_keyset_from_json",
]
