"""Deterministic AEAD over AES-SIV."""
from __future__ import annotations

import os
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from tink.proto import aes_siv_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .params import require_version, type_url as key_type_url
from .registry import KeyManager

AES_SIV_KEY_SIZE: Final[int] = 64
SIV_SIZE: Final[int] = 16


class AesSivDaead:
    def __init__(self, key: bytes) -> None:
        self._siv = AESSIV(key)

    def encrypt_deterministically(self, plaintext: bytes, associated_data: bytes) -> bytes:
        return self._siv.encrypt(plaintext, [associated_data])

    def decrypt_deterministically(self, ciphertext: bytes, associated_data: bytes) -> bytes:
        if len(ciphertext) < SIV_SIZE:
            raise CryptoError("ciphertext too short")
        try:
            return self._siv.decrypt(ciphertext, [associated_data])
        except InvalidTag as exc:
            raise CryptoError("deterministic AEAD verification failed") from exc


class AesSivKeyManager(KeyManager):
    type_url = key_type_url("AesSivKey")
    family = Family.DAEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_siv_pb2.AesSivKeyFormat, key_format)
        require_version(message.version)
        if message.key_size != AES_SIV_KEY_SIZE:
            raise KeysetError("AES-SIV keys must be 64 bytes")
        return aes_siv_pb2.AesSivKey(key_value=os.urandom(AES_SIV_KEY_SIZE)).SerializeToString()

    def primitive(self, key_value: bytes) -> AesSivDaead:
        key = parse(aes_siv_pb2.AesSivKey, key_value)
        require_version(key.version)
        if len(key.key_value) != AES_SIV_KEY_SIZE:
            raise KeysetError("AES-SIV keys must be 64 bytes")
        return AesSivDaead(key.key_value)


__all__ = ["AesSivDaead", "AesSivKeyManager"]
