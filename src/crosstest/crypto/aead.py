"""AEAD key managers: AES-GCM, AES-GCM-SIV, ChaCha20-Poly1305 and AES-CTR-HMAC."""
from __future__ import annotations

import os
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import constant_time, hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, AESGCMSIV, ChaCha20Poly1305
from tink.proto import aes_ctr_hmac_aead_pb2, aes_ctr_pb2, aes_gcm_pb2, aes_gcm_siv_pb2, chacha20_poly1305_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .mac import HmacKey, HmacParams, hmac_key_format
from .params import hash_algorithm, require_version, type_url as key_type_url
from .registry import KeyManager

IV_SIZE: Final[int] = 12
TAG_SIZE: Final[int] = 16
AES_KEY_SIZES: Final[frozenset[int]] = frozenset({16, 32})
CHACHA_KEY_SIZE: Final[int] = 32
MIN_CTR_IV_SIZE: Final[int] = 12
MAX_CTR_IV_SIZE: Final[int] = 16


def _check_aes_key_size(size: int) -> None:
    if size not in AES_KEY_SIZES:
        raise KeysetError(f"invalid AES key size {size}")


class NonceAead:
    """``nonce || ciphertext || tag`` framing around a ``cryptography`` AEAD."""

    def __init__(self, aead: AESGCM | AESGCMSIV | ChaCha20Poly1305) -> None:
        self._aead = aead

    def encrypt(self, plaintext: bytes, associated_data: bytes) -> bytes:
        nonce = os.urandom(IV_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, associated_data)

    def decrypt(self, ciphertext: bytes, associated_data: bytes) -> bytes:
        if len(ciphertext) < IV_SIZE + TAG_SIZE:
            raise CryptoError("ciphertext too short")
        try:
            return self._aead.decrypt(ciphertext[:IV_SIZE], ciphertext[IV_SIZE:], associated_data)
        except InvalidTag as exc:
            raise CryptoError("AEAD tag verification failed") from exc


class AesGcmKeyManager(KeyManager):
    type_url = key_type_url("AesGcmKey")
    family = Family.AEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_gcm_pb2.AesGcmKeyFormat, key_format)
        require_version(message.version)
        _check_aes_key_size(message.key_size)
        return aes_gcm_pb2.AesGcmKey(key_value=os.urandom(message.key_size)).SerializeToString()

    def primitive(self, key_value: bytes) -> NonceAead:
        key = parse(aes_gcm_pb2.AesGcmKey, key_value)
        require_version(key.version)
        _check_aes_key_size(len(key.key_value))
        return NonceAead(AESGCM(key.key_value))


class AesGcmSivKeyManager(KeyManager):
    type_url = key_type_url("AesGcmSivKey")
    family = Family.AEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_gcm_siv_pb2.AesGcmSivKeyFormat, key_format)
        require_version(message.version)
        _check_aes_key_size(message.key_size)
        return aes_gcm_siv_pb2.AesGcmSivKey(key_value=os.urandom(message.key_size)).SerializeToString()

    def primitive(self, key_value: bytes) -> NonceAead:
        key = parse(aes_gcm_siv_pb2.AesGcmSivKey, key_value)
        require_version(key.version)
        _check_aes_key_size(len(key.key_value))
        # Raises UnsupportedAlgorithm when the OpenSSL backend lacks GCM-SIV.
        return NonceAead(AESGCMSIV(key.key_value))


class ChaCha20Poly1305KeyManager(KeyManager):
    type_url = key_type_url("ChaCha20Poly1305Key")
    family = Family.AEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        parse(chacha20_poly1305_pb2.ChaCha20Poly1305KeyFormat, key_format)
        key = chacha20_poly1305_pb2.ChaCha20Poly1305Key(key_value=os.urandom(CHACHA_KEY_SIZE))
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> NonceAead:
        key = parse(chacha20_poly1305_pb2.ChaCha20Poly1305Key, key_value)
        require_version(key.version)
        if len(key.key_value) != CHACHA_KEY_SIZE:
            raise KeysetError("ChaCha20-Poly1305 keys must be 32 bytes")
        return NonceAead(ChaCha20Poly1305(key.key_value))


def _check_ctr_iv_size(iv_size: int) -> None:
    if not MIN_CTR_IV_SIZE <= iv_size <= MAX_CTR_IV_SIZE:
        raise KeysetError(f"invalid AES-CTR IV size {iv_size}")


class AesCtrHmacAead:
    """Encrypt-then-MAC over AES-CTR and a truncated HMAC."""

    def __init__(self, aes_key: bytes, iv_size: int, hmac_key: bytes, params: HmacParams) -> None:
        self._aes_key = aes_key
        self._iv_size = iv_size
        self._hmac_key = hmac_key
        self._params = params

    def _ctr(self, iv: bytes):
        counter_block = iv + b"\x00" * (16 - len(iv))
        return Cipher(algorithms.AES(self._aes_key), modes.CTR(counter_block))

    def _tag(self, associated_data: bytes, payload: bytes) -> bytes:
        mac = hmac.HMAC(self._hmac_key, hash_algorithm(self._params.hash_type))
        mac.update(associated_data)
        mac.update(payload)
        mac.update((len(associated_data) * 8).to_bytes(8, "big"))
        return mac.finalize()[: self._params.tag_size]

    def encrypt(self, plaintext: bytes, associated_data: bytes) -> bytes:
        iv = os.urandom(self._iv_size)
        encryptor = self._ctr(iv).encryptor()
        payload = iv + encryptor.update(plaintext) + encryptor.finalize()
        return payload + self._tag(associated_data, payload)

    def decrypt(self, ciphertext: bytes, associated_data: bytes) -> bytes:
        tag_size = self._params.tag_size
        if len(ciphertext) < self._iv_size + tag_size:
            raise CryptoError("ciphertext too short")
        payload, tag = ciphertext[:-tag_size], ciphertext[-tag_size:]
        if not constant_time.bytes_eq(self._tag(associated_data, payload), tag):
            raise CryptoError("AEAD tag verification failed")
        iv = payload[: self._iv_size]
        decryptor = self._ctr(iv).decryptor()
        return decryptor.update(payload[self._iv_size :]) + decryptor.finalize()


def aes_ctr_hmac_key_format(
    message: aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKeyFormat,
) -> tuple[int, int, HmacParams, int]:
    """Validated ``(aes_key_size, iv_size, hmac_params, hmac_key_size)``."""
    if not message.HasField("aes_ctr_key_format") or not message.HasField("hmac_key_format"):
        raise KeysetError("incomplete AES-CTR-HMAC key format")
    ctr_format = message.aes_ctr_key_format
    _check_ctr_iv_size(ctr_format.params.iv_size)
    _check_aes_key_size(ctr_format.key_size)
    hmac_params, hmac_key_size = hmac_key_format(message.hmac_key_format)
    return ctr_format.key_size, ctr_format.params.iv_size, hmac_params, hmac_key_size


class AesCtrHmacAeadKeyManager(KeyManager):
    type_url = key_type_url("AesCtrHmacAeadKey")
    family = Family.AEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKeyFormat, key_format)
        aes_key_size, iv_size, hmac_params, hmac_key_size = aes_ctr_hmac_key_format(message)
        key = aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKey(
            aes_ctr_key=aes_ctr_pb2.AesCtrKey(
                params=aes_ctr_pb2.AesCtrParams(iv_size=iv_size),
                key_value=os.urandom(aes_key_size),
            ),
            hmac_key=HmacKey(0, hmac_params, os.urandom(hmac_key_size)).to_proto(),
        )
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> AesCtrHmacAead:
        key = parse(aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKey, key_value)
        require_version(key.version)
        if not key.HasField("aes_ctr_key"):
            raise KeysetError("missing AES-CTR key")
        aes_key = key.aes_ctr_key
        require_version(aes_key.version)
        _check_ctr_iv_size(aes_key.params.iv_size)
        _check_aes_key_size(len(aes_key.key_value))
        if not key.HasField("hmac_key"):
            raise KeysetError("missing HMAC key")
        hmac_key = HmacKey.from_proto(key.hmac_key)
        hmac_key.validate()
        return AesCtrHmacAead(aes_key.key_value, aes_key.params.iv_size, hmac_key.key_value, hmac_key.params)


__all__ = [
    "NonceAead",
    "AesCtrHmacAead",
    "AesGcmKeyManager",
    "AesGcmSivKeyManager",
    "ChaCha20Poly1305KeyManager",
    "AesCtrHmacAeadKeyManager",
    "aes_ctr_hmac_key_format",
]
