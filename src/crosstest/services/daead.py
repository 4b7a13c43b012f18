"""Deterministic AEAD service."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import DecryptParams, EncryptParams, KeysetParams


def register(registry: MethodRegistry) -> None:
    @registry.method("daead.create")
    async def _create(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation("daead.create", lambda: create(request.keyset, Family.DAEAD))

    @registry.method("daead.encrypt_deterministically")
    async def _encrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = EncryptParams.model_validate(params)

        def _op() -> bytes:
            daead = primitive_from_keyset(request.keyset, Family.DAEAD)
            return daead.encrypt_deterministically(request.plaintext, request.associated_data)

        return await run_operation("daead.encrypt_deterministically", _op)

    @registry.method("daead.decrypt_deterministically")
    async def _decrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = DecryptParams.model_validate(params)

        def _op() -> bytes:
            daead = primitive_from_keyset(request.keyset, Family.DAEAD)
            return daead.decrypt_deterministically(request.ciphertext, request.associated_data)

        return await run_operation("daead.decrypt_deterministically", _op)
