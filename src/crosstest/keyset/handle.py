"""Validated keyset handles and the materializer operations built on them."""
from __future__ import annotations

import os
from typing import Any, Iterable, Set

from ..crypto import REGISTRY
from ..exceptions import KeysetError, SecretMaterialError, UnsupportedKeyTypeError
from ..families import Aead, Family
from . import binary, json_format
from .models import (
    EncryptedKeyset,
    Key,
    KeyMaterialType,
    Keyset,
    KeysetEncoding,
    KeysetInfo,
    KeyStatus,
    KeyTemplate,
    OutputPrefixType,
)

_KNOWN_STATUSES = frozenset({KeyStatus.ENABLED, KeyStatus.DISABLED, KeyStatus.DESTROYED})
_KNOWN_PREFIXES = frozenset(
    {OutputPrefixType.TINK, OutputPrefixType.LEGACY, OutputPrefixType.RAW, OutputPrefixType.CRUNCHY}
)


def validate_keyset(keyset: Keyset) -> None:
    """Raise :class:`KeysetError` unless ``keyset`` can back a handle."""

    if not keyset.keys:
        raise KeysetError("keyset must contain at least one key")
    all_public = True
    enabled = 0
    primaries = 0
    for key in keyset.keys:
        if key.status not in _KNOWN_STATUSES:
            raise KeysetError(f"key {key.key_id} has unknown status {key.status}")
        if key.output_prefix_type not in _KNOWN_PREFIXES:
            raise KeysetError(f"key {key.key_id} has unknown output prefix {key.output_prefix_type}")
        if key.status != KeyStatus.DESTROYED and key.key_data is None:
            raise KeysetError(f"key {key.key_id} has no key data")
        if key.key_data is None or key.key_data.key_material_type != KeyMaterialType.ASYMMETRIC_PUBLIC:
            all_public = False
        if key.status == KeyStatus.ENABLED:
            enabled += 1
            if key.key_id == keyset.primary_key_id:
                primaries += 1
    if not enabled:
        raise KeysetError("keyset must contain at least one enabled key")
    if primaries > 1:
        raise KeysetError("keyset contains multiple primary keys")
    if primaries == 0 and not all_public:
        raise KeysetError("keyset has no enabled primary key")


def ensure_no_secret(keyset: Keyset) -> None:
    for key in keyset.keys:
        if key.key_data is not None and key.key_data.is_secret:
            raise SecretMaterialError(f"key {key.key_id} contains secret key material")


def _new_key_id(taken: Set[int]) -> int:
    while True:
        key_id = int.from_bytes(os.urandom(4), "big")
        if key_id and key_id not in taken:
            return key_id


def _decode(data: bytes, encoding: KeysetEncoding) -> Keyset:
    if KeysetEncoding(encoding) is KeysetEncoding.JSON:
        return json_format.keyset_from_json(data)
    return binary.decode_keyset(data)


def _encode(keyset: Keyset, encoding: KeysetEncoding) -> bytes:
    if KeysetEncoding(encoding) is KeysetEncoding.JSON:
        return json_format.keyset_to_json(keyset).encode("utf-8")
    return binary.encode_keyset(keyset)


class KeysetHandle:
    """Immutable wrapper around a validated :class:`Keyset`."""

    __slots__ = ("_keyset",)

    def __init__(self, keyset: Keyset) -> None:
        validate_keyset(keyset)
        self._keyset = keyset

    @property
    def keyset(self) -> Keyset:
        return self._keyset

    @property
    def primary_key_id(self) -> int:
        return self._keyset.primary_key_id

    def enabled_keys(self) -> Iterable[Key]:
        return (key for key in self._keyset.keys if key.status == KeyStatus.ENABLED)

    @classmethod
    def generate_new(cls, template: KeyTemplate) -> "KeysetHandle":
        if template.output_prefix_type not in _KNOWN_PREFIXES:
            raise KeysetError(f"unknown output prefix {template.output_prefix_type}")
        manager = REGISTRY.get(template.type_url)
        if not manager.allows_new_keys:
            raise UnsupportedKeyTypeError(f"key type {template.type_url} does not allow new keys")
        key_id = _new_key_id(set())
        key = Key(
            key_data=manager.new_key_data(template.value),
            status=KeyStatus.ENABLED,
            key_id=key_id,
            output_prefix_type=template.output_prefix_type,
        )
        return cls(Keyset(primary_key_id=key_id, keys=(key,)))

    def add(self, template: KeyTemplate, *, as_primary: bool = False) -> "KeysetHandle":
        """Return a new handle with one more key generated from ``template``."""

        fresh = KeysetHandle.generate_new(template).keyset.keys[0]
        key_id = _new_key_id({key.key_id for key in self._keyset.keys})
        key = Key(fresh.key_data, fresh.status, key_id, fresh.output_prefix_type)
        primary = key_id if as_primary else self._keyset.primary_key_id
        return KeysetHandle(Keyset(primary_key_id=primary, keys=self._keyset.keys + (key,)))

    @classmethod
    def read(
        cls,
        data: bytes,
        encoding: KeysetEncoding = KeysetEncoding.BINARY,
        *,
        allow_secret: bool = True,
    ) -> "KeysetHandle":
        keyset = _decode(data, encoding)
        if not allow_secret:
            ensure_no_secret(keyset)
        return cls(keyset)

    def write(self, encoding: KeysetEncoding = KeysetEncoding.BINARY, *, with_secret: bool = True) -> bytes:
        if not with_secret:
            ensure_no_secret(self._keyset)
        return _encode(self._keyset, encoding)

    def public_keyset_handle(self) -> "KeysetHandle":
        keys = []
        for key in self._keyset.keys:
            if key.key_data is None or key.key_data.key_material_type != KeyMaterialType.ASYMMETRIC_PRIVATE:
                raise KeysetError(f"key {key.key_id} is not an asymmetric private key")
            manager = REGISTRY.private(key.key_data.type_url)
            keys.append(
                Key(
                    key_data=manager.public_key_data(key.key_data.value),
                    status=key.status,
                    key_id=key.key_id,
                    output_prefix_type=key.output_prefix_type,
                )
            )
        return KeysetHandle(Keyset(primary_key_id=self._keyset.primary_key_id, keys=tuple(keys)))

    def keyset_info(self) -> KeysetInfo:
        return self._keyset.info()

    def primitive(self, family: Family | str) -> Any:
        from ..primitives.factory import build

        return build(self, Family(family))

    def write_encrypted(
        self,
        master_aead: Aead,
        associated_data: bytes = b"",
        encoding: KeysetEncoding = KeysetEncoding.BINARY,
    ) -> bytes:
        ciphertext = master_aead.encrypt(binary.encode_keyset(self._keyset), associated_data)
        encrypted = EncryptedKeyset(encrypted_keyset=ciphertext, keyset_info=self.keyset_info())
        if KeysetEncoding(encoding) is KeysetEncoding.JSON:
            return json_format.encrypted_keyset_to_json(encrypted).encode("utf-8")
        return binary.encode_encrypted_keyset(encrypted)

    @classmethod
    def read_encrypted(
        cls,
        data: bytes,
        master_aead: Aead,
        associated_data: bytes = b"",
        encoding: KeysetEncoding = KeysetEncoding.BINARY,
    ) -> "KeysetHandle":
        if KeysetEncoding(encoding) is KeysetEncoding.JSON:
            encrypted = json_format.encrypted_keyset_from_json(data)
        else:
            encrypted = binary.decode_encrypted_keyset(data)
        if not encrypted.encrypted_keyset:
            raise KeysetError("encrypted keyset is empty")
        plaintext = master_aead.decrypt(encrypted.encrypted_keyset, associated_data)
        return cls(binary.decode_keyset(plaintext))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeysetHandle):
            return NotImplemented
        return self._keyset == other._keyset

    def __hash__(self) -> int:
        return hash(self._keyset)

    def __repr__(self) -> str:
        return f"KeysetHandle(primary_key_id={self.primary_key_id}, keys={len(self._keyset.keys)})"


# -- Materializer operations ----------------------------------------------


def from_template(template_bytes: bytes) -> KeysetHandle:
    return KeysetHandle.generate_new(binary.decode_template(template_bytes))


def from_serialized(
    data: bytes, encoding: KeysetEncoding = KeysetEncoding.BINARY, allow_secret: bool = True
) -> KeysetHandle:
    return KeysetHandle.read(data, encoding, allow_secret=allow_secret)


def to_serialized(
    handle: KeysetHandle, encoding: KeysetEncoding = KeysetEncoding.BINARY, with_secret: bool = True
) -> bytes:
    return handle.write(encoding, with_secret=with_secret)


def public_of(handle: KeysetHandle) -> KeysetHandle:
    return handle.public_keyset_handle()


__all__ = [
    "KeysetHandle",
    "validate_keyset",
    "ensure_no_secret",
    "from_template",
    "from_serialized",
    "to_serialized",
    "public_of",
]
