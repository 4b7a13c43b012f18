import json

import pytest
from tink.proto import tink_pb2

from crosstest.exceptions import DecodeError
from crosstest.keyset import binary, json_format
from crosstest.keyset.models import (
    EncryptedKeyset,
    Key,
    KeyData,
    KeyMaterialType,
    Keyset,
    KeyStatus,
    KeyTemplate,
    OutputPrefixType,
)


def _sample_keyset() -> Keyset:
    return Keyset(
        primary_key_id=42,
        keys=(
            Key(
                key_data=KeyData("type.googleapis.com/google.crypto.tink.AesGcmKey", b"\x1a\x10" + bytes(16), 1),
                status=1,
                key_id=42,
                output_prefix_type=1,
            ),
            Key(
                key_data=KeyData("type.googleapis.com/google.crypto.tink.HmacKey", b"\x01\x02", 1),
                status=2,
                key_id=0xFFFFFFFF,
                output_prefix_type=3,
            ),
        ),
    )


def test_models_coerce_known_enum_values() -> None:
    key = _sample_keyset().keys[0]
    assert key.status is KeyStatus.ENABLED
    assert key.output_prefix_type is OutputPrefixType.TINK
    assert key.key_data.key_material_type is KeyMaterialType.SYMMETRIC
    assert key.key_data.is_secret


def test_models_keep_unknown_enum_values() -> None:
    key = Key(key_data=None, status=17, key_id=1, output_prefix_type=99)
    assert key.status == 17
    assert not isinstance(key.output_prefix_type, OutputPrefixType)


def test_binary_keyset_roundtrip() -> None:
    keyset = _sample_keyset()
    assert binary.decode_keyset(binary.encode_keyset(keyset)) == keyset


def test_binary_template_roundtrip() -> None:
    template = KeyTemplate("type.googleapis.com/google.crypto.tink.AesGcmKey", b"\x10\x10", 3)
    assert binary.decode_template(binary.encode_template(template)) == template


def test_binary_encrypted_keyset_roundtrip() -> None:
    encrypted = EncryptedKeyset(encrypted_keyset=b"\x00ciphertext", keyset_info=_sample_keyset().info())
    assert binary.decode_encrypted_keyset(binary.encode_encrypted_keyset(encrypted)) == encrypted


def test_json_uses_camel_case_enum_names_and_standard_base64() -> None:
    document = json.loads(json_format.keyset_to_json(_sample_keyset()))
    assert document["primaryKeyId"] == 42
    first = document["key"][0]
    assert first["keyData"]["typeUrl"].endswith("AesGcmKey")
    assert first["keyData"]["keyMaterialType"] == "SYMMETRIC"
    assert first["status"] == "ENABLED"
    assert first["outputPrefixType"] == "TINK"
    assert document["key"][1]["keyData"]["value"] == "AQI="


def test_json_binary_conversion_preserves_keyset() -> None:
    keyset = _sample_keyset()
    from_json = json_format.keyset_from_json(json_format.keyset_to_json(keyset))
    assert binary.encode_keyset(from_json) == binary.encode_keyset(keyset)


def test_json_accepts_numeric_enums() -> None:
    document = {
        "primaryKeyId": 7,
        "key": [
            {
                "keyData": {"typeUrl": "t", "value": "AAE=", "keyMaterialType": 3},
                "status": 1,
                "keyId": 7,
                "outputPrefixType": 3,
            }
        ],
    }
    keyset = json_format.keyset_from_json(json.dumps(document))
    assert keyset.keys[0].key_data.key_material_type is KeyMaterialType.ASYMMETRIC_PUBLIC
    assert keyset.keys[0].key_data.value == b"\x00\x01"


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"primaryKeyId": -1}',
        '{"key": [{"status": "BOGUS"}]}',
        '{"key": [{"keyData": {"value": "***"}}]}',
    ],
)
def test_json_rejects_malformed_documents(payload: str) -> None:
    with pytest.raises(DecodeError):
        json_format.keyset_from_json(payload)


def test_encrypted_keyset_json_roundtrip() -> None:
    encrypted = EncryptedKeyset(encrypted_keyset=b"abc", keyset_info=_sample_keyset().info())
    restored = json_format.encrypted_keyset_from_json(json_format.encrypted_keyset_to_json(encrypted))
    assert restored == encrypted


def test_keyset_info_never_carries_key_material() -> None:
    info = _sample_keyset().info().as_dict()
    assert info["primary_key_id"] == 42
    assert info["key_info"][1] == {
        "type_url": "type.googleapis.com/google.crypto.tink.HmacKey",
        "status": "DISABLED",
        "key_id": 0xFFFFFFFF,
        "output_prefix_type": "RAW",
    }
    assert "value" not in json.dumps(info)


@pytest.mark.parametrize("data", [b"\x12\x05\x0a", b"\x0a\xff", b"\x08"])
def test_binary_rejects_truncated_messages(data: bytes) -> None:
    with pytest.raises(DecodeError):
        binary.decode_keyset(data)


def test_binary_keyset_is_a_tink_keyset_message() -> None:
    message = tink_pb2.Keyset.FromString(binary.encode_keyset(_sample_keyset()))
    assert message.primary_key_id == 42
    assert [key.key_id for key in message.key] == [42, 0xFFFFFFFF]
    assert message.key[1].key_data.value == b"\x01\x02"
    assert message.key[1].output_prefix_type == tink_pb2.RAW
