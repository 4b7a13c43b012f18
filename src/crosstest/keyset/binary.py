"""Binary (protocol-buffer) encoding of keysets, templates and keyset info."""
from __future__ import annotations

from tink.proto import tink_pb2

from .models import EncryptedKeyset, Key, KeyData, KeyInfo, Keyset, KeysetInfo, KeyTemplate
from .proto import parse


def _key_data_to_proto(key_data: KeyData) -> tink_pb2.KeyData:
    return tink_pb2.KeyData(
        type_url=key_data.type_url,
        value=key_data.value,
        key_material_type=int(key_data.key_material_type),
    )


def _key_data_from_proto(message: tink_pb2.KeyData) -> KeyData:
    return KeyData(
        type_url=message.type_url,
        value=message.value,
        key_material_type=message.key_material_type,
    )


def encode_keyset(keyset: Keyset) -> bytes:
    message = tink_pb2.Keyset(primary_key_id=keyset.primary_key_id)
    for key in keyset.keys:
        entry = message.key.add(
            status=int(key.status),
            key_id=key.key_id,
            output_prefix_type=int(key.output_prefix_type),
        )
        if key.key_data is not None:
            entry.key_data.CopyFrom(_key_data_to_proto(key.key_data))
    return message.SerializeToString()


def decode_keyset(data: bytes) -> Keyset:
    message = parse(tink_pb2.Keyset, data)
    keys = tuple(
        Key(
            key_data=_key_data_from_proto(entry.key_data) if entry.HasField("key_data") else None,
            status=entry.status,
            key_id=entry.key_id,
            output_prefix_type=entry.output_prefix_type,
        )
        for entry in message.key
    )
    return Keyset(primary_key_id=message.primary_key_id, keys=keys)


def template_to_proto(template: KeyTemplate) -> tink_pb2.KeyTemplate:
    return tink_pb2.KeyTemplate(
        type_url=template.type_url,
        value=template.value,
        output_prefix_type=int(template.output_prefix_type),
    )


def encode_template(template: KeyTemplate) -> bytes:
    return template_to_proto(template).SerializeToString()


def decode_template(data: bytes) -> KeyTemplate:
    message = parse(tink_pb2.KeyTemplate, data)
    return KeyTemplate(
        type_url=message.type_url,
        value=message.value,
        output_prefix_type=message.output_prefix_type,
    )


def _keyset_info_to_proto(info: KeysetInfo) -> tink_pb2.KeysetInfo:
    message = tink_pb2.KeysetInfo(primary_key_id=info.primary_key_id)
    for key_info in info.key_info:
        message.key_info.add(
            type_url=key_info.type_url,
            status=int(key_info.status),
            key_id=key_info.key_id,
            output_prefix_type=int(key_info.output_prefix_type),
        )
    return message


def _keyset_info_from_proto(message: tink_pb2.KeysetInfo) -> KeysetInfo:
    return KeysetInfo(
        primary_key_id=message.primary_key_id,
        key_info=tuple(
            KeyInfo(
                type_url=item.type_url,
                status=item.status,
                key_id=item.key_id,
                output_prefix_type=item.output_prefix_type,
            )
            for item in message.key_info
        ),
    )


def encode_keyset_info(info: KeysetInfo) -> bytes:
    return _keyset_info_to_proto(info).SerializeToString()


def decode_keyset_info(data: bytes) -> KeysetInfo:
    return _keyset_info_from_proto(parse(tink_pb2.KeysetInfo, data))


def encode_encrypted_keyset(encrypted: EncryptedKeyset) -> bytes:
    message = tink_pb2.EncryptedKeyset(encrypted_keyset=encrypted.encrypted_keyset)
    if encrypted.keyset_info is not None:
        message.keyset_info.CopyFrom(_keyset_info_to_proto(encrypted.keyset_info))
    return message.SerializeToString()


def decode_encrypted_keyset(data: bytes) -> EncryptedKeyset:
    message = parse(tink_pb2.EncryptedKeyset, data)
    return EncryptedKeyset(
        encrypted_keyset=message.encrypted_keyset,
        keyset_info=_keyset_info_from_proto(message.keyset_info) if message.HasField("keyset_info") else None,
    )


__all__ = [
    "encode_keyset",
    "decode_keyset",
    "encode_template",
    "decode_template",
    "template_to_proto",
    "encode_keyset_info",
    "decode_keyset_info",
    "encode_encrypted_keyset",
    "decode_encrypted_keyset",
]
