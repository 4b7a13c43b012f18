"""HMAC and AES-CMAC message authentication codes."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives import cmac, constant_time, hmac
from cryptography.hazmat.primitives.ciphers import algorithms
from tink.proto import aes_cmac_pb2, hmac_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .params import digest_size, hash_algorithm, require_version, type_url as key_type_url
from .registry import KeyManager

MIN_TAG_SIZE: Final[int] = 10
MIN_HMAC_KEY_SIZE: Final[int] = 16
CMAC_KEY_SIZE: Final[int] = 32
CMAC_MAX_TAG_SIZE: Final[int] = 16


@dataclass(frozen=True, slots=True)
class HmacParams:
    hash_type: int
    tag_size: int

    def to_proto(self) -> hmac_pb2.HmacParams:
        return hmac_pb2.HmacParams(hash=self.hash_type, tag_size=self.tag_size)

    @classmethod
    def from_proto(cls, message: hmac_pb2.HmacParams) -> "HmacParams":
        return cls(message.hash, message.tag_size)

    def validate(self) -> None:
        if self.tag_size < MIN_TAG_SIZE:
            raise KeysetError(f"HMAC tag size {self.tag_size} is too small")
        if self.tag_size > digest_size(self.hash_type):
            raise KeysetError(f"HMAC tag size {self.tag_size} exceeds the digest size")


@dataclass(frozen=True, slots=True)
class HmacKey:
    version: int
    params: HmacParams
    key_value: bytes

    def to_proto(self) -> hmac_pb2.HmacKey:
        return hmac_pb2.HmacKey(
            version=self.version, params=self.params.to_proto(), key_value=self.key_value
        )

    @classmethod
    def from_proto(cls, message: hmac_pb2.HmacKey) -> "HmacKey":
        return cls(message.version, HmacParams.from_proto(message.params), message.key_value)

    def validate(self) -> None:
        require_version(self.version)
        if len(self.key_value) < MIN_HMAC_KEY_SIZE:
            raise KeysetError("HMAC key is too short")
        self.params.validate()


def hmac_key_format(message: hmac_pb2.HmacKeyFormat) -> tuple[HmacParams, int]:
    """Validated ``(params, key_size)`` of an HMAC key format."""
    require_version(message.version)
    params = HmacParams.from_proto(message.params)
    if message.key_size < MIN_HMAC_KEY_SIZE:
        raise KeysetError(f"HMAC key size {message.key_size} is too small")
    params.validate()
    return params, message.key_size


class HmacMac:
    def __init__(self, key: bytes, hash_type: int, tag_size: int) -> None:
        self._key = key
        self._hash_type = hash_type
        self._tag_size = tag_size

    def compute_mac(self, data: bytes) -> bytes:
        mac = hmac.HMAC(self._key, hash_algorithm(self._hash_type))
        mac.update(data)
        return mac.finalize()[: self._tag_size]

    def verify_mac(self, mac_value: bytes, data: bytes) -> None:
        if not constant_time.bytes_eq(self.compute_mac(data), mac_value):
            raise CryptoError("invalid MAC")


class AesCmacMac:
    def __init__(self, key: bytes, tag_size: int) -> None:
        self._key = key
        self._tag_size = tag_size

    def compute_mac(self, data: bytes) -> bytes:
        mac = cmac.CMAC(algorithms.AES(self._key))
        mac.update(data)
        return mac.finalize()[: self._tag_size]

    def verify_mac(self, mac_value: bytes, data: bytes) -> None:
        if not constant_time.bytes_eq(self.compute_mac(data), mac_value):
            raise CryptoError("invalid MAC")


class HmacKeyManager(KeyManager):
    type_url = key_type_url("HmacKey")
    family = Family.MAC

    def new_key_value(self, key_format: bytes) -> bytes:
        params, key_size = hmac_key_format(parse(hmac_pb2.HmacKeyFormat, key_format))
        return HmacKey(0, params, os.urandom(key_size)).to_proto().SerializeToString()

    def primitive(self, key_value: bytes) -> HmacMac:
        key = HmacKey.from_proto(parse(hmac_pb2.HmacKey, key_value))
        key.validate()
        return HmacMac(key.key_value, key.params.hash_type, key.params.tag_size)


def _cmac_tag_size(params: aes_cmac_pb2.AesCmacParams) -> int:
    if not MIN_TAG_SIZE <= params.tag_size <= CMAC_MAX_TAG_SIZE:
        raise KeysetError(f"AES-CMAC tag size {params.tag_size} is out of range")
    return params.tag_size


class AesCmacKeyManager(KeyManager):
    type_url = key_type_url("AesCmacKey")
    family = Family.MAC

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_cmac_pb2.AesCmacKeyFormat, key_format)
        if message.key_size != CMAC_KEY_SIZE:
            raise KeysetError("AES-CMAC keys must be 32 bytes")
        _cmac_tag_size(message.params)
        key = aes_cmac_pb2.AesCmacKey(key_value=os.urandom(CMAC_KEY_SIZE), params=message.params)
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> AesCmacMac:
        key = parse(aes_cmac_pb2.AesCmacKey, key_value)
        require_version(key.version)
        if len(key.key_value) != CMAC_KEY_SIZE:
            raise KeysetError("AES-CMAC keys must be 32 bytes")
        return AesCmacMac(key.key_value, _cmac_tag_size(key.params))


__all__ = [
    "HmacParams",
    "HmacKey",
    "HmacMac",
    "AesCmacMac",
    "HmacKeyManager",
    "AesCmacKeyManager",
    "hmac_key_format",
]
