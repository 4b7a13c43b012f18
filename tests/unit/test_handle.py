import pytest

from crosstest.exceptions import CryptoError, KeysetError, SecretMaterialError, UnsupportedKeyTypeError
from crosstest.keyset import binary, templates
from crosstest.keyset.handle import KeysetHandle, from_serialized, from_template, public_of, to_serialized
from crosstest.keyset.models import (
    Key,
    KeyMaterialType,
    Keyset,
    KeysetEncoding,
    KeyStatus,
    KeyTemplate,
    OutputPrefixType,
)


def test_from_template_generates_one_enabled_primary_key() -> None:
    handle = from_template(templates.serialized_template("AES128_GCM"))
    (key,) = handle.keyset.keys
    assert key.key_id == handle.primary_key_id
    assert key.key_id != 0
    assert key.status is KeyStatus.ENABLED
    assert key.output_prefix_type is OutputPrefixType.TINK
    assert key.key_data.type_url == "type.googleapis.com/google.crypto.tink.AesGcmKey"
    assert key.key_data.key_material_type is KeyMaterialType.SYMMETRIC


def test_from_template_unknown_type_url() -> None:
    template = KeyTemplate("type.googleapis.com/google.crypto.tink.NoSuchKey", b"", OutputPrefixType.TINK)
    with pytest.raises(UnsupportedKeyTypeError):
        from_template(binary.encode_template(template))


def test_from_template_rejects_public_key_types() -> None:
    template = KeyTemplate("type.googleapis.com/google.crypto.tink.Ed25519PublicKey", b"", OutputPrefixType.TINK)
    with pytest.raises(UnsupportedKeyTypeError):
        from_template(binary.encode_template(template))


def test_from_template_rejects_unknown_prefix() -> None:
    template = templates.get_template("AES128_GCM")
    bad = KeyTemplate(template.type_url, template.value, OutputPrefixType.UNKNOWN_PREFIX)
    with pytest.raises(KeysetError):
        from_template(binary.encode_template(bad))


def test_from_template_rejects_malformed_bytes() -> None:
    with pytest.raises(KeysetError):
        from_template(b"\x0a\xff")


def test_from_template_rejects_invalid_key_format() -> None:
    template = templates.get_template("AES128_GCM")
    bad = KeyTemplate(template.type_url, b"\x10\x07", OutputPrefixType.TINK)
    with pytest.raises(KeysetError):
        from_template(binary.encode_template(bad))


def test_serialized_roundtrip_both_encodings(new_handle) -> None:
    handle = new_handle("HMAC_SHA256_128BITTAG")
    for encoding in KeysetEncoding:
        data = to_serialized(handle, encoding)
        assert from_serialized(data, encoding) == handle


def test_no_secret_boundaries(new_handle) -> None:
    handle = new_handle("AES128_GCM")
    with pytest.raises(SecretMaterialError):
        to_serialized(handle, with_secret=False)
    with pytest.raises(SecretMaterialError):
        from_serialized(handle.write(), allow_secret=False)


def test_public_keyset_can_be_read_without_secret(new_handle) -> None:
    public = public_of(new_handle("ECDSA_P256"))
    data = to_serialized(public, with_secret=False)
    assert from_serialized(data, allow_secret=False) == public


def test_public_of_preserves_ids_prefixes_and_primary(new_handle) -> None:
    private = new_handle("ED25519").add(templates.get_template("ED25519_RAW"))
    public = public_of(private)
    assert public.primary_key_id == private.primary_key_id
    for priv_key, pub_key in zip(private.keyset.keys, public.keyset.keys):
        assert pub_key.key_id == priv_key.key_id
        assert pub_key.status == priv_key.status
        assert pub_key.output_prefix_type == priv_key.output_prefix_type
        assert pub_key.key_data.key_material_type is KeyMaterialType.ASYMMETRIC_PUBLIC
        assert pub_key.key_data.type_url.endswith("Ed25519PublicKey")


def test_public_keyset_with_two_primaries_is_rejected(new_handle) -> None:
    key = public_of(new_handle("ED25519")).keyset.keys[0]
    with pytest.raises(KeysetError):
        KeysetHandle(Keyset(primary_key_id=key.key_id, keys=(key, key)))


def test_public_keyset_without_primary_is_accepted(new_handle) -> None:
    key = public_of(new_handle("ED25519")).keyset.keys[0]
    handle = KeysetHandle(Keyset(primary_key_id=key.key_id ^ 1, keys=(key,)))
    assert handle.primitive("verify") is not None


def test_public_of_symmetric_keyset_fails(new_handle) -> None:
    with pytest.raises(KeysetError):
        public_of(new_handle("AES128_GCM"))


def test_add_keeps_primary_unless_requested(new_handle) -> None:
    handle = new_handle("AES128_GCM")
    grown = handle.add(templates.get_template("AES256_GCM"))
    assert grown.primary_key_id == handle.primary_key_id
    rotated = handle.add(templates.get_template("AES256_GCM"), as_primary=True)
    assert rotated.primary_key_id != handle.primary_key_id
    assert len({key.key_id for key in rotated.keyset.keys}) == 2


def _key(key_id: int, status: int = KeyStatus.ENABLED, prefix: int = OutputPrefixType.TINK):
    template = templates.get_template("AES128_GCM")
    data = KeysetHandle.generate_new(template).keyset.keys[0].key_data
    return Key(key_data=data, status=status, key_id=key_id, output_prefix_type=prefix)


@pytest.mark.parametrize(
    "keyset",
    [
        Keyset(primary_key_id=1, keys=()),
        Keyset(primary_key_id=2, keys=(_key(1),)),
        Keyset(primary_key_id=1, keys=(_key(1, status=KeyStatus.DISABLED),)),
        Keyset(primary_key_id=1, keys=(_key(1), _key(1))),
        Keyset(primary_key_id=1, keys=(_key(1, status=KeyStatus.UNKNOWN_STATUS),)),
        Keyset(primary_key_id=1, keys=(_key(1, prefix=OutputPrefixType.UNKNOWN_PREFIX),)),
        Keyset(primary_key_id=1, keys=(Key(None, KeyStatus.ENABLED, 1, OutputPrefixType.TINK),)),
    ],
)
def test_invalid_keysets_are_rejected(keyset: Keyset) -> None:
    with pytest.raises(KeysetError):
        KeysetHandle(keyset)


def test_encrypted_keyset_roundtrip(new_handle) -> None:
    master = new_handle("AES256_GCM").primitive("aead")
    handle = new_handle("HMAC_SHA512_256BITTAG")
    for encoding in KeysetEncoding:
        blob = handle.write_encrypted(master, b"ad", encoding)
        assert KeysetHandle.read_encrypted(blob, master, b"ad", encoding) == handle


def test_encrypted_keyset_wrong_associated_data(new_handle) -> None:
    master = new_handle("AES256_GCM").primitive("aead")
    blob = new_handle("AES128_GCM").write_encrypted(master, b"ad")
    with pytest.raises(CryptoError):
        KeysetHandle.read_encrypted(blob, master, b"other")
