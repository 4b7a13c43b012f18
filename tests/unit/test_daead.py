import pytest

from crosstest.exceptions import CryptoError


def test_deterministic_encryption_is_stable(new_handle) -> None:
    daead = new_handle("AES256_SIV").primitive("daead")
    first = daead.encrypt_deterministically(b"message", b"ad")
    assert first == daead.encrypt_deterministically(b"message", b"ad")
    assert first != daead.encrypt_deterministically(b"message", b"other")
    assert daead.decrypt_deterministically(first, b"ad") == b"message"


def test_deterministic_decryption_rejects_wrong_associated_data(new_handle) -> None:
    daead = new_handle("AES256_SIV").primitive("daead")
    ciphertext = daead.encrypt_deterministically(b"message", b"ad")
    with pytest.raises(CryptoError):
        daead.decrypt_deterministically(ciphertext, b"")


def test_empty_plaintext(new_handle) -> None:
    daead = new_handle("AES256_SIV").primitive("daead")
    assert daead.decrypt_deterministically(daead.encrypt_deterministically(b"", b""), b"") == b""
