"""Pseudo-random functions: HMAC, HKDF and AES-CMAC."""
from __future__ import annotations

import os
from typing import Final

from cryptography.hazmat.primitives import cmac, hmac
from cryptography.hazmat.primitives.ciphers import algorithms
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from tink.proto import aes_cmac_prf_pb2, hkdf_prf_pb2, hmac_prf_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .params import HashType, digest_size, hash_algorithm, require_version, type_url as key_type_url
from .registry import KeyManager

MIN_HMAC_PRF_KEY_SIZE: Final[int] = 16
MIN_HKDF_PRF_KEY_SIZE: Final[int] = 32
CMAC_PRF_KEY_SIZE: Final[int] = 32
CMAC_OUTPUT_SIZE: Final[int] = 16
_HKDF_HASHES: Final[frozenset[int]] = frozenset({HashType.SHA256, HashType.SHA512})


def _check_output_length(output_length: int, maximum: int) -> None:
    if output_length < 0:
        raise CryptoError("output length must not be negative")
    if output_length > maximum:
        raise CryptoError(f"output length {output_length} exceeds the maximum of {maximum}")


class HmacPrf:
    def __init__(self, key: bytes, hash_type: int) -> None:
        self._key = key
        self._hash_type = hash_type
        self.max_output_length = digest_size(hash_type)

    def compute(self, input_data: bytes, output_length: int) -> bytes:
        _check_output_length(output_length, self.max_output_length)
        mac = hmac.HMAC(self._key, hash_algorithm(self._hash_type))
        mac.update(input_data)
        return mac.finalize()[:output_length]


class HkdfPrf:
    """HKDF with the PRF input used as ``info``."""

    def __init__(self, key: bytes, hash_type: int, salt: bytes) -> None:
        self._key = key
        self._hash_type = hash_type
        self._salt = salt or None
        self.max_output_length = 255 * digest_size(hash_type)

    def compute(self, input_data: bytes, output_length: int) -> bytes:
        _check_output_length(output_length, self.max_output_length)
        if output_length == 0:
            return b""
        hkdf = HKDF(
            algorithm=hash_algorithm(self._hash_type),
            length=output_length,
            salt=self._salt,
            info=input_data,
        )
        return hkdf.derive(self._key)


class AesCmacPrf:
    max_output_length = CMAC_OUTPUT_SIZE

    def __init__(self, key: bytes) -> None:
        self._key = key

    def compute(self, input_data: bytes, output_length: int) -> bytes:
        _check_output_length(output_length, self.max_output_length)
        mac = cmac.CMAC(algorithms.AES(self._key))
        mac.update(input_data)
        return mac.finalize()[:output_length]


class HmacPrfKeyManager(KeyManager):
    type_url = key_type_url("HmacPrfKey")
    family = Family.PRF

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(hmac_prf_pb2.HmacPrfKeyFormat, key_format)
        require_version(message.version)
        digest_size(message.params.hash)
        if message.key_size < MIN_HMAC_PRF_KEY_SIZE:
            raise KeysetError(f"HMAC PRF key size {message.key_size} is too small")
        key = hmac_prf_pb2.HmacPrfKey(params=message.params, key_value=os.urandom(message.key_size))
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> HmacPrf:
        key = parse(hmac_prf_pb2.HmacPrfKey, key_value)
        require_version(key.version)
        if len(key.key_value) < MIN_HMAC_PRF_KEY_SIZE:
            raise KeysetError("HMAC PRF key is too short")
        return HmacPrf(key.key_value, key.params.hash)


def _check_hkdf_params(params: hkdf_prf_pb2.HkdfPrfParams) -> None:
    if params.hash not in _HKDF_HASHES:
        raise KeysetError(f"HKDF PRF does not support hash type {params.hash}")


class HkdfPrfKeyManager(KeyManager):
    type_url = key_type_url("HkdfPrfKey")
    family = Family.PRF

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(hkdf_prf_pb2.HkdfPrfKeyFormat, key_format)
        require_version(message.version)
        _check_hkdf_params(message.params)
        if message.key_size < MIN_HKDF_PRF_KEY_SIZE:
            raise KeysetError(f"HKDF PRF key size {message.key_size} is too small")
        key = hkdf_prf_pb2.HkdfPrfKey(params=message.params, key_value=os.urandom(message.key_size))
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> HkdfPrf:
        key = parse(hkdf_prf_pb2.HkdfPrfKey, key_value)
        require_version(key.version)
        _check_hkdf_params(key.params)
        if len(key.key_value) < MIN_HKDF_PRF_KEY_SIZE:
            raise KeysetError("HKDF PRF key is too short")
        return HkdfPrf(key.key_value, key.params.hash, key.params.salt)


class AesCmacPrfKeyManager(KeyManager):
    type_url = key_type_url("AesCmacPrfKey")
    family = Family.PRF

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_cmac_prf_pb2.AesCmacPrfKeyFormat, key_format)
        require_version(message.version)
        if message.key_size != CMAC_PRF_KEY_SIZE:
            raise KeysetError("AES-CMAC PRF keys must be 32 bytes")
        return aes_cmac_prf_pb2.AesCmacPrfKey(key_value=os.urandom(CMAC_PRF_KEY_SIZE)).SerializeToString()

    def primitive(self, key_value: bytes) -> AesCmacPrf:
        key = parse(aes_cmac_prf_pb2.AesCmacPrfKey, key_value)
        require_version(key.version)
        if len(key.key_value) != CMAC_PRF_KEY_SIZE:
            raise KeysetError("AES-CMAC PRF keys must be 32 bytes")
        return AesCmacPrf(key.key_value)


__all__ = [
    "HmacPrf",
    "HkdfPrf",
    "AesCmacPrf",
    "HmacPrfKeyManager",
    "HkdfPrfKeyManager",
    "AesCmacPrfKeyManager",
]
