"""Primitive families and the capability interfaces each one exposes."""
from __future__ import annotations

from enum import Enum
from typing import BinaryIO, Protocol, runtime_checkable


class Family(str, Enum):
    AEAD = "aead"
    DAEAD = "daead"
    MAC = "mac"
    PRF = "prf"
    SIGN = "sign"
    VERIFY = "verify"
    HYBRID_ENCRYPT = "hybrid_encrypt"
    HYBRID_DECRYPT = "hybrid_decrypt"
    STREAMING_AEAD = "streaming_aead"


# Families whose keys must use the RAW output prefix.
PREFIXLESS = frozenset({Family.PRF, Family.STREAMING_AEAD})


class Aead(Protocol):
    def encrypt(self, plaintext: bytes, associated_data: bytes) -> bytes: ...

    def decrypt(self, ciphertext: bytes, associated_data: bytes) -> bytes: ...


class DeterministicAead(Protocol):
    def encrypt_deterministically(self, plaintext: bytes, associated_data: bytes) -> bytes: ...

    def decrypt_deterministically(self, ciphertext: bytes, associated_data: bytes) -> bytes: ...


class Mac(Protocol):
    def compute_mac(self, data: bytes) -> bytes: ...

    def verify_mac(self, mac_value: bytes, data: bytes) -> None: ...


class Prf(Protocol):
    max_output_length: int

    def compute(self, input_data: bytes, output_length: int) -> bytes: ...


class PublicKeySign(Protocol):
    def sign(self, data: bytes) -> bytes: ...


class PublicKeyVerify(Protocol):
    def verify(self, signature: bytes, data: bytes) -> None: ...


class HybridEncrypt(Protocol):
    def encrypt(self, plaintext: bytes, context_info: bytes) -> bytes: ...


class HybridDecrypt(Protocol):
    def decrypt(self, ciphertext: bytes, context_info: bytes) -> bytes: ...


@runtime_checkable
class StreamingAead(Protocol):
    """Whole-stream encryption from ``source`` to ``destination`` in ``chunk_size`` reads."""

    def encrypt_stream(
        self, source: BinaryIO, destination: BinaryIO, associated_data: bytes, chunk_size: int
    ) -> None: ...

    def decrypt_stream(
        self, source: BinaryIO, destination: BinaryIO, associated_data: bytes, chunk_size: int
    ) -> None: ...


__all__ = [
    "Family",
    "PREFIXLESS",
    "Aead",
    "DeterministicAead",
    "Mac",
    "Prf",
    "PublicKeySign",
    "PublicKeyVerify",
    "HybridEncrypt",
    "HybridDecrypt",
    "StreamingAead",
]
