"""Segmented streaming AEAD over AES-GCM with HKDF-derived per-stream keys."""
from __future__ import annotations

import os
from typing import BinaryIO, Final, Iterator

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from tink.proto import aes_gcm_hkdf_streaming_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .params import HashType, digest_size, hash_algorithm, require_version, type_url as key_type_url
from .registry import KeyManager

NONCE_PREFIX_SIZE: Final[int] = 7
TAG_SIZE: Final[int] = 16
MAX_SEGMENTS: Final[int] = 2**32


def _parse_params(
    params: aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingParams, key_size: int
) -> tuple[int, int, int]:
    segment_size = params.ciphertext_segment_size
    derived_key_size = params.derived_key_size
    hash_type = params.hkdf_hash_type
    if derived_key_size not in (16, 32):
        raise KeysetError(f"invalid derived key size {derived_key_size}")
    if key_size < derived_key_size:
        raise KeysetError("key is shorter than the derived key")
    if hash_type == HashType.UNKNOWN_HASH:
        raise KeysetError("unknown HKDF hash type")
    digest_size(hash_type)
    if segment_size < derived_key_size + NONCE_PREFIX_SIZE + TAG_SIZE + 2:
        raise KeysetError(f"ciphertext segment size {segment_size} is too small")
    return segment_size, derived_key_size, hash_type


class AesGcmHkdfStreaming:
    """Ciphertext layout: ``header || segment_0 || ... || segment_n``.

    The header is ``header_length || salt || nonce_prefix``. Every segment is
    AES-GCM with nonce ``nonce_prefix || segment_number || last_flag``.
    """

    def __init__(self, key: bytes, segment_size: int, derived_key_size: int, hash_type: int) -> None:
        self._key = key
        self.segment_size = segment_size
        self.derived_key_size = derived_key_size
        self._hash_type = hash_type
        self.header_length = 1 + derived_key_size + NONCE_PREFIX_SIZE

    @property
    def first_plaintext_segment_size(self) -> int:
        return self.segment_size - self.header_length - TAG_SIZE

    @property
    def plaintext_segment_size(self) -> int:
        return self.segment_size - TAG_SIZE

    def _segment_key(self, salt: bytes, associated_data: bytes) -> AESGCM:
        derived = HKDF(
            algorithm=hash_algorithm(self._hash_type),
            length=self.derived_key_size,
            salt=salt,
            info=associated_data,
        ).derive(self._key)
        return AESGCM(derived)

    @staticmethod
    def nonce(prefix: bytes, segment_number: int, last: bool) -> bytes:
        if segment_number >= MAX_SEGMENTS:
            raise CryptoError("too many segments")
        return prefix + segment_number.to_bytes(4, "big") + (b"\x01" if last else b"\x00")

    def new_encrypting_stream(self, destination: BinaryIO, associated_data: bytes) -> "EncryptingStream":
        salt = os.urandom(self.derived_key_size)
        prefix = os.urandom(NONCE_PREFIX_SIZE)
        destination.write(bytes([self.header_length]) + salt + prefix)
        return EncryptingStream(self, self._segment_key(salt, associated_data), prefix, destination)

    def new_decrypting_stream(self, source: BinaryIO, associated_data: bytes) -> "DecryptingStream":
        header = _read_up_to(source, self.header_length)
        if len(header) != self.header_length or header[0] != self.header_length:
            raise CryptoError("invalid ciphertext header")
        salt = header[1 : 1 + self.derived_key_size]
        prefix = header[1 + self.derived_key_size :]
        return DecryptingStream(self, self._segment_key(salt, associated_data), prefix, source)

    def encrypt(self, plaintext: bytes, associated_data: bytes, destination: BinaryIO) -> None:
        with self.new_encrypting_stream(destination, associated_data) as stream:
            stream.write(plaintext)


def _read_up_to(source: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = source.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class EncryptingStream:
    """Buffers plaintext and writes sealed segments to ``destination``.

    A full segment is only sealed once more plaintext follows it, so the final
    segment carries the last flag. ``close`` must be called to finish the stream.
    """

    def __init__(self, scheme: AesGcmHkdfStreaming, aead: AESGCM, prefix: bytes, destination: BinaryIO) -> None:
        self._scheme = scheme
        self._aead = aead
        self._prefix = prefix
        self._destination = destination
        self._buffer = bytearray()
        self._segment_number = 0
        self._closed = False

    def _capacity(self) -> int:
        if self._segment_number == 0:
            return self._scheme.first_plaintext_segment_size
        return self._scheme.plaintext_segment_size

    def _seal(self, plaintext: bytes, last: bool) -> None:
        nonce = self._scheme.nonce(self._prefix, self._segment_number, last)
        self._destination.write(self._aead.encrypt(nonce, plaintext, None))
        self._segment_number += 1

    def write(self, data: bytes) -> int:
        if self._closed:
            raise CryptoError("stream is closed")
        self._buffer.extend(data)
        while len(self._buffer) > self._capacity():
            size = self._capacity()
            segment = bytes(self._buffer[:size])
            del self._buffer[:size]
            self._seal(segment, last=False)
        return len(data)

    def close(self) -> None:
        if self._closed:
            return
        self._seal(bytes(self._buffer), last=True)
        self._buffer.clear()
        self._closed = True

    def __enter__(self) -> "EncryptingStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()


class DecryptingStream:
    """Reads and authenticates segments from ``source`` on demand."""

    def __init__(self, scheme: AesGcmHkdfStreaming, aead: AESGCM, prefix: bytes, source: BinaryIO) -> None:
        self._scheme = scheme
        self._aead = aead
        self._prefix = prefix
        self._source = source
        self._segments = self._iter_segments()
        self._buffer = bytearray()
        self._done = False

    def _iter_segments(self) -> Iterator[bytes]:
        segment_number = 0
        size = self._scheme.segment_size - self._scheme.header_length
        pending = _read_up_to(self._source, size + 1)
        while True:
            segment, lookahead = pending[:size], pending[size:]
            last = not lookahead
            if len(segment) < TAG_SIZE:
                raise CryptoError("ciphertext truncated")
            nonce = self._scheme.nonce(self._prefix, segment_number, last)
            try:
                yield self._aead.decrypt(nonce, segment, None)
            except InvalidTag as exc:
                raise CryptoError(f"segment {segment_number} failed authentication") from exc
            if last:
                return
            segment_number += 1
            size = self._scheme.segment_size
            pending = lookahead + _read_up_to(self._source, size)

    def read(self, size: int = -1) -> bytes:
        while not self._done and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer.extend(next(self._segments))
            except StopIteration:
                self._done = True
        if size < 0:
            size = len(self._buffer)
        out = bytes(self._buffer[:size])
        del self._buffer[:size]
        return out

    def __enter__(self) -> "DecryptingStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._segments.close()


class AesGcmHkdfStreamingKeyManager(KeyManager):
    type_url = key_type_url("AesGcmHkdfStreamingKey")
    family = Family.STREAMING_AEAD

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingKeyFormat, key_format)
        require_version(message.version)
        if not message.HasField("params"):
            raise KeysetError("missing streaming AEAD parameters")
        _parse_params(message.params, message.key_size)
        key = aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingKey(
            params=message.params, key_value=os.urandom(message.key_size)
        )
        return key.SerializeToString()

    def primitive(self, key_value: bytes) -> AesGcmHkdfStreaming:
        key = parse(aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingKey, key_value)
        require_version(key.version)
        if not key.HasField("params"):
            raise KeysetError("missing streaming AEAD parameters")
        segment_size, derived_key_size, hash_type = _parse_params(key.params, len(key.key_value))
        return AesGcmHkdfStreaming(key.key_value, segment_size, derived_key_size, hash_type)


__all__ = [
    "AesGcmHkdfStreaming",
    "EncryptingStream",
    "DecryptingStream",
    "AesGcmHkdfStreamingKeyManager",
]
