import pytest

from crosstest.exceptions import CryptoError, KeysetError, PrimitiveError
from crosstest.families import Family, StreamingAead
from crosstest.keyset import templates
from crosstest.keyset.handle import KeysetHandle
from crosstest.keyset.models import Key, Keyset, KeyStatus, OutputPrefixType
from crosstest.primitives import PREFIX_SIZE, output_prefix
from crosstest.primitives.factory import primitive_set


def test_output_prefixes() -> None:
    assert output_prefix(0x01020304, 1) == b"\x01\x01\x02\x03\x04"
    assert output_prefix(0x01020304, 2) == b"\x00\x01\x02\x03\x04"
    assert output_prefix(0x01020304, 4) == b"\x00\x01\x02\x03\x04"
    assert output_prefix(0x01020304, 3) == b""
    assert PREFIX_SIZE == 5


def test_rotation_keeps_old_ciphertexts_readable(new_handle) -> None:
    old = new_handle("AES128_GCM")
    ciphertext = old.primitive("aead").encrypt(b"secret", b"")
    rotated = old.add(templates.get_template("AES256_GCM_RAW"), as_primary=True)
    aead = rotated.primitive(Family.AEAD)
    assert aead.decrypt(ciphertext, b"") == b"secret"
    fresh = aead.encrypt(b"secret", b"")
    assert fresh[:5] != ciphertext[:5]
    assert aead.decrypt(fresh, b"") == b"secret"


def test_raw_keys_are_tried_after_prefix_matches(new_handle) -> None:
    raw = new_handle("AES128_GCM_RAW")
    ciphertext = raw.primitive("aead").encrypt(b"raw", b"")
    combined = raw.add(templates.get_template("AES128_GCM"), as_primary=True)
    assert combined.primitive("aead").decrypt(ciphertext, b"") == b"raw"


def test_disabled_keys_do_not_participate(new_handle) -> None:
    handle = new_handle("AES128_GCM").add(templates.get_template("AES128_GCM"))
    primary_id = handle.primary_key_id
    other = next(key for key in handle.keyset.keys if key.key_id != primary_id)
    ciphertext = KeysetHandle(Keyset(other.key_id, (other,))).primitive("aead").encrypt(b"m", b"")
    assert handle.primitive("aead").decrypt(ciphertext, b"") == b"m"

    disabled = Key(other.key_data, KeyStatus.DISABLED, other.key_id, other.output_prefix_type)
    keys = tuple(disabled if key.key_id == other.key_id else key for key in handle.keyset.keys)
    restricted = KeysetHandle(Keyset(primary_id, keys))
    assert len(primitive_set(restricted, Family.AEAD).entries) == 1
    with pytest.raises(CryptoError):
        restricted.primitive("aead").decrypt(ciphertext, b"")


@pytest.mark.parametrize(
    "name, family",
    [
        ("AES128_GCM", Family.MAC),
        ("HMAC_SHA256_128BITTAG", Family.AEAD),
        ("ED25519", Family.PRF),
        ("HMAC_SHA256_PRF", Family.SIGN),
        ("AES256_SIV", Family.STREAMING_AEAD),
    ],
)
def test_family_mismatch(new_handle, name: str, family: Family) -> None:
    with pytest.raises(PrimitiveError):
        new_handle(name).primitive(family)


def test_mixed_families_fail(new_handle) -> None:
    handle = new_handle("AES128_GCM").add(templates.get_template("HMAC_SHA256_128BITTAG"))
    with pytest.raises(PrimitiveError):
        handle.primitive("aead")


def test_unknown_family_name(new_handle) -> None:
    with pytest.raises(ValueError):
        new_handle("AES128_GCM").primitive("teleport")


def test_candidates_prefer_matching_prefix(new_handle) -> None:
    handle = new_handle("HMAC_SHA256_128BITTAG")
    primitives = primitive_set(handle, Family.MAC)
    prefix = primitives.primary.prefix
    candidates = list(primitives.candidates(prefix + b"tag"))
    assert [entry.key_id for entry, _ in candidates] == [handle.primary_key_id]
    assert candidates[0][1] == b"tag"
    assert list(primitives.candidates(b"abc")) == []


class _UncheckedHandle:
    """Quacks like a handle without running keyset validation."""

    def __init__(self, keys) -> None:
        self._keys = keys
        self.primary_key_id = keys[0].key_id

    def enabled_keys(self):
        return iter(self._keys)


def test_enabled_key_without_key_data_is_a_keyset_error() -> None:
    handle = _UncheckedHandle([Key(None, KeyStatus.ENABLED, 7, OutputPrefixType.TINK)])
    with pytest.raises(KeysetError):
        primitive_set(handle, Family.AEAD)


def test_wrapped_streaming_aead_matches_its_interface(new_handle) -> None:
    streaming = new_handle("AES128_GCM_HKDF_4KB").primitive(Family.STREAMING_AEAD)
    assert isinstance(streaming, StreamingAead)
