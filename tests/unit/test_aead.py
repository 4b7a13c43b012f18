import pytest

from crosstest.crypto.aead import IV_SIZE, TAG_SIZE
from crosstest.exceptions import CryptoError

AEAD_TEMPLATES = [
    "AES128_GCM",
    "AES256_GCM",
    "AES128_GCM_RAW",
    "AES256_GCM_RAW",
    "CHACHA20_POLY1305",
    "CHACHA20_POLY1305_RAW",
    "AES128_CTR_HMAC_SHA256",
    "AES256_CTR_HMAC_SHA256",
]


@pytest.mark.parametrize("name", AEAD_TEMPLATES)
def test_aead_roundtrip(new_handle, name: str) -> None:
    aead = new_handle(name).primitive("aead")
    ciphertext = aead.encrypt(b"plaintext", b"associated")
    assert aead.decrypt(ciphertext, b"associated") == b"plaintext"


@pytest.mark.parametrize("name", AEAD_TEMPLATES)
def test_aead_rejects_wrong_associated_data(new_handle, name: str) -> None:
    aead = new_handle(name).primitive("aead")
    ciphertext = aead.encrypt(b"plaintext", b"associated")
    with pytest.raises(CryptoError):
        aead.decrypt(ciphertext, b"other")


@pytest.mark.parametrize("name", ["AES128_GCM", "AES128_CTR_HMAC_SHA256"])
def test_aead_rejects_tampering(new_handle, name: str) -> None:
    aead = new_handle(name).primitive("aead")
    ciphertext = bytearray(aead.encrypt(b"plaintext", b""))
    ciphertext[-1] ^= 0x01
    with pytest.raises(CryptoError):
        aead.decrypt(bytes(ciphertext), b"")


def test_aes_gcm_ciphertext_layout(new_handle) -> None:
    raw = new_handle("AES128_GCM_RAW").primitive("aead")
    assert len(raw.encrypt(b"x" * 10, b"")) == IV_SIZE + 10 + TAG_SIZE
    tink = new_handle("AES128_GCM")
    ciphertext = tink.primitive("aead").encrypt(b"x" * 10, b"")
    assert ciphertext[0] == 0x01
    assert int.from_bytes(ciphertext[1:5], "big") == tink.primary_key_id
    assert len(ciphertext) == 5 + IV_SIZE + 10 + TAG_SIZE


def test_aead_encryption_is_randomized(new_handle) -> None:
    aead = new_handle("AES256_GCM").primitive("aead")
    assert aead.encrypt(b"same", b"") != aead.encrypt(b"same", b"")


def test_aead_short_ciphertext(new_handle) -> None:
    aead = new_handle("AES128_GCM_RAW").primitive("aead")
    with pytest.raises(CryptoError):
        aead.decrypt(b"short", b"")


@pytest.mark.parametrize("name", ["AES128_GCM_SIV", "AES256_GCM_SIV"])
def test_aes_gcm_siv_roundtrip(gcm_siv, new_handle, name: str) -> None:
    aead = new_handle(name).primitive("aead")
    assert aead.decrypt(aead.encrypt(b"siv", b"ad"), b"ad") == b"siv"
