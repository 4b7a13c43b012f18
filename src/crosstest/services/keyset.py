"""Keyset management service."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from ..keyset import templates
from ..keyset.handle import KeysetHandle, from_template, public_of, to_serialized
from ..keyset.models import KeysetEncoding
from .envelope import run_operation
from .messages import (
    FromJsonParams,
    GenerateParams,
    KeysetParams,
    PrivateKeysetParams,
    ReadEncryptedParams,
    TemplateNameParams,
    ToJsonParams,
    WriteEncryptedParams,
)


def _master_aead(master_keyset: bytes) -> Any:
    return KeysetHandle.read(master_keyset).primitive(Family.AEAD)


def register(registry: MethodRegistry) -> None:
    @registry.method("keyset.get_template")
    async def _get_template(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = TemplateNameParams.model_validate(params)
        return await run_operation(
            "keyset.get_template", lambda: templates.serialized_template(request.template_name)
        )

    @registry.method("keyset.generate")
    async def _generate(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = GenerateParams.model_validate(params)
        return await run_operation(
            "keyset.generate", lambda: to_serialized(from_template(request.template))
        )

    @registry.method("keyset.public")
    async def _public(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PrivateKeysetParams.model_validate(params)
        return await run_operation(
            "keyset.public",
            lambda: to_serialized(public_of(KeysetHandle.read(request.private_keyset))),
        )

    @registry.method("keyset.to_json")
    async def _to_json(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = ToJsonParams.model_validate(params)

        def _op() -> str:
            handle = KeysetHandle.read(request.keyset)
            return handle.write(KeysetEncoding.JSON).decode("utf-8")

        return await run_operation("keyset.to_json", _op)

    @registry.method("keyset.from_json")
    async def _from_json(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = FromJsonParams.model_validate(params)

        def _op() -> bytes:
            handle = KeysetHandle.read(
                request.json_keyset.encode("utf-8"),
                KeysetEncoding.JSON,
                allow_secret=request.allow_secret,
            )
            return handle.write(KeysetEncoding.BINARY)

        return await run_operation("keyset.from_json", _op)

    @registry.method("keyset.info")
    async def _info(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation(
            "keyset.info", lambda: KeysetHandle.read(request.keyset).keyset_info().as_dict()
        )

    @registry.method("keyset.read_encrypted")
    async def _read_encrypted(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = ReadEncryptedParams.model_validate(params)

        def _op() -> bytes:
            handle = KeysetHandle.read_encrypted(
                request.encrypted_keyset,
                _master_aead(request.master_keyset),
                request.associated_data,
                request.encoding,
            )
            return handle.write(KeysetEncoding.BINARY)

        return await run_operation("keyset.read_encrypted", _op)

    @registry.method("keyset.write_encrypted")
    async def _write_encrypted(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = WriteEncryptedParams.model_validate(params)

        def _op() -> bytes:
            handle = KeysetHandle.read(request.keyset)
            return handle.write_encrypted(
                _master_aead(request.master_keyset), request.associated_data, request.encoding
            )

        return await run_operation("keyset.write_encrypted", _op)
