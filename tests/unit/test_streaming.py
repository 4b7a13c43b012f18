import io

import pytest

from crosstest.exceptions import CryptoError, PrimitiveError
from crosstest.keyset.handle import KeysetHandle
from crosstest.keyset.models import Key, Keyset, OutputPrefixType


def _encrypt(streaming, plaintext: bytes, associated_data: bytes = b"ad", chunk_size: int = 1000) -> bytes:
    destination = io.BytesIO()
    streaming.encrypt_stream(io.BytesIO(plaintext), destination, associated_data, chunk_size)
    return destination.getvalue()


def _decrypt(streaming, ciphertext: bytes, associated_data: bytes = b"ad", chunk_size: int = 1000) -> bytes:
    destination = io.BytesIO()
    streaming.decrypt_stream(io.BytesIO(ciphertext), destination, associated_data, chunk_size)
    return destination.getvalue()


@pytest.mark.parametrize("size", [0, 1, 4096 - 24 - 16, 4096 - 24 - 16 + 1, 50_000])
def test_streaming_roundtrip_across_segment_boundaries(new_handle, size: int) -> None:
    streaming = new_handle("AES128_GCM_HKDF_4KB").primitive("streaming_aead")
    plaintext = bytes(i % 251 for i in range(size))
    assert _decrypt(streaming, _encrypt(streaming, plaintext)) == plaintext


def test_streaming_many_segments_with_small_chunks(new_handle) -> None:
    streaming = new_handle("AES256_GCM_HKDF_4KB").primitive("streaming_aead")
    plaintext = bytes(range(256)) * 100
    ciphertext = _encrypt(streaming, plaintext, chunk_size=7)
    assert len(ciphertext) > 6 * 4096
    assert _decrypt(streaming, ciphertext, chunk_size=13) == plaintext


def test_streaming_rejects_truncation(new_handle) -> None:
    streaming = new_handle("AES128_GCM_HKDF_4KB").primitive("streaming_aead")
    ciphertext = _encrypt(streaming, b"x" * 10_000)
    with pytest.raises(CryptoError):
        _decrypt(streaming, ciphertext[:4096])
    with pytest.raises(CryptoError):
        _decrypt(streaming, ciphertext[:-1])


def test_streaming_rejects_wrong_associated_data(new_handle) -> None:
    streaming = new_handle("AES128_GCM_HKDF_4KB").primitive("streaming_aead")
    ciphertext = _encrypt(streaming, b"payload")
    with pytest.raises(CryptoError):
        _decrypt(streaming, ciphertext, associated_data=b"other")


def test_streaming_rejects_garbage_header(new_handle) -> None:
    streaming = new_handle("AES128_GCM_HKDF_4KB").primitive("streaming_aead")
    with pytest.raises(CryptoError):
        _decrypt(streaming, b"\x00" * 100)


def test_streaming_keys_must_be_raw(new_handle) -> None:
    key = new_handle("AES128_GCM_HKDF_4KB").keyset.keys[0]
    tink_key = Key(key.key_data, key.status, key.key_id, OutputPrefixType.TINK)
    handle = KeysetHandle(Keyset(key.key_id, (tink_key,)))
    with pytest.raises(PrimitiveError):
        handle.primitive("streaming_aead")
