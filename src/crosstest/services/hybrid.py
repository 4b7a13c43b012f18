"""Hybrid encryption service."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import (
    HybridDecryptParams,
    HybridEncryptParams,
    PrivateKeysetParams,
    PublicKeysetParams,
)


def register(registry: MethodRegistry) -> None:
    @registry.method("hybrid.create_encrypt")
    async def _create_encrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PublicKeysetParams.model_validate(params)
        return await run_operation(
            "hybrid.create_encrypt", lambda: create(request.public_keyset, Family.HYBRID_ENCRYPT)
        )

    @registry.method("hybrid.create_decrypt")
    async def _create_decrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PrivateKeysetParams.model_validate(params)
        return await run_operation(
            "hybrid.create_decrypt", lambda: create(request.private_keyset, Family.HYBRID_DECRYPT)
        )

    @registry.method("hybrid.encrypt")
    async def _encrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = HybridEncryptParams.model_validate(params)

        def _op() -> bytes:
            encrypter = primitive_from_keyset(request.public_keyset, Family.HYBRID_ENCRYPT)
            return encrypter.encrypt(request.plaintext, request.context_info)

        return await run_operation("hybrid.encrypt", _op)

    @registry.method("hybrid.decrypt")
    async def _decrypt(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = HybridDecryptParams.model_validate(params)

        def _op() -> bytes:
            decrypter = primitive_from_keyset(request.private_keyset, Family.HYBRID_DECRYPT)
            return decrypter.decrypt(request.ciphertext, request.context_info)

        return await run_operation("hybrid.decrypt", _op)
