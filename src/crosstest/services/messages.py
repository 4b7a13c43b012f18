"""Request parameter models for every RPC method.

Binary fields travel as base64url text; standard base64 and missing padding
are accepted. Optional associated data or context info defaults to empty.
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from ..keyset.models import KeysetEncoding
from ..utils.encoding import b64d


def _decode(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        raise ValueError("expected base64 text")
    return b64d(value)


def _decode_optional(value: Any) -> bytes:
    if value is None:
        return b""
    return _decode(value)


B64Bytes = Annotated[bytes, BeforeValidator(_decode)]
OptionalB64Bytes = Annotated[bytes, BeforeValidator(_decode_optional)]
KeyId = Annotated[int, Field(ge=0, le=0xFFFFFFFF)]


class Params(BaseModel):
    model_config = ConfigDict(extra="forbid")


class KeysetParams(Params):
    keyset: B64Bytes


class EncryptParams(KeysetParams):
    plaintext: B64Bytes
    associated_data: OptionalB64Bytes = b""


class DecryptParams(KeysetParams):
    ciphertext: B64Bytes
    associated_data: OptionalB64Bytes = b""


class ComputeMacParams(KeysetParams):
    data: B64Bytes


class VerifyMacParams(KeysetParams):
    mac_value: B64Bytes
    data: B64Bytes


class PrfComputeParams(KeysetParams):
    key_id: Optional[KeyId] = None
    input_data: B64Bytes
    output_length: int = Field(ge=0)


class PrivateKeysetParams(Params):
    private_keyset: B64Bytes


class PublicKeysetParams(Params):
    public_keyset: B64Bytes


class SignParams(PrivateKeysetParams):
    data: B64Bytes


class VerifyParams(PublicKeysetParams):
    signature: B64Bytes
    data: B64Bytes


class HybridEncryptParams(PublicKeysetParams):
    plaintext: B64Bytes
    context_info: OptionalB64Bytes = b""


class HybridDecryptParams(PrivateKeysetParams):
    ciphertext: B64Bytes
    context_info: OptionalB64Bytes = b""


class TemplateNameParams(Params):
    template_name: str = Field(min_length=1)


class GenerateParams(Params):
    template: B64Bytes


class ToJsonParams(KeysetParams):
    pass


class FromJsonParams(Params):
    json_keyset: str
    allow_secret: bool = True


class ReadEncryptedParams(Params):
    encrypted_keyset: B64Bytes
    master_keyset: B64Bytes
    associated_data: OptionalB64Bytes = b""
    encoding: KeysetEncoding = KeysetEncoding.BINARY


class WriteEncryptedParams(KeysetParams):
    master_keyset: B64Bytes
    associated_data: OptionalB64Bytes = b""
    encoding: KeysetEncoding = KeysetEncoding.BINARY


__all__ = [
    "B64Bytes",
    "OptionalB64Bytes",
    "Params",
    "KeysetParams",
    "EncryptParams",
    "DecryptParams",
    "ComputeMacParams",
    "VerifyMacParams",
    "PrfComputeParams",
    "PrivateKeysetParams",
    "PublicKeysetParams",
    "SignParams",
    "VerifyParams",
    "HybridEncryptParams",
    "HybridDecryptParams",
    "TemplateNameParams",
    "GenerateParams",
    "ToJsonParams",
    "FromJsonParams",
    "ReadEncryptedParams",
    "WriteEncryptedParams",
]
