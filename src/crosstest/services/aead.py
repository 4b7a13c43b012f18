"""AEAD service: ``aead.create``, ``aead.encrypt`` and ``aead.decrypt``."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import DecryptParams, EncryptParams, KeysetParams


def register(registry: MethodRegistry) -> None:
    @registry.method("aead.create")
    async def _create(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation("aead.create", lambda: create(request.keyset, Family.AEAD))

    @registry.method("aead.encrypt")
    async def _encrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = EncryptParams.model_validate(params)

        def _op() -> bytes:
            aead = primitive_from_keyset(request.keyset, Family.AEAD)
            return aead.encrypt(request.plaintext, request.associated_data)

        return await run_operation("aead.encrypt", _op)

    @registry.method("aead.decrypt")
    async def _decrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = DecryptParams.model_validate(params)

        def _op() -> bytes:
            aead = primitive_from_keyset(request.keyset, Family.AEAD)
            return aead.decrypt(request.ciphertext, request.associated_data)

        return await run_operation("aead.decrypt", _op)
