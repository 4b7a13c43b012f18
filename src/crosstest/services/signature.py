"""Signature service: signer and verifier creation, signing and verification."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import PrivateKeysetParams, PublicKeysetParams, SignParams, VerifyParams


def register(registry: MethodRegistry) -> None:
    @registry.method("signature.create_signer")
    async def _create_signer(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PrivateKeysetParams.model_validate(params)
        return await run_operation(
            "signature.create_signer", lambda: create(request.private_keyset, Family.SIGN)
        )

    @registry.method("signature.create_verifier")
    async def _create_verifier(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PublicKeysetParams.model_validate(params)
        return await run_operation(
            "signature.create_verifier", lambda: create(request.public_keyset, Family.VERIFY)
        )

    @registry.method("signature.sign")
    async def _sign(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = SignParams.model_validate(params)

        def _op() -> bytes:
            return primitive_from_keyset(request.private_keyset, Family.SIGN).sign(request.data)

        return await run_operation("signature.sign", _op)

    @registry.method("signature.verify")
    async def _verify(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = VerifyParams.model_validate(params)

        def _op() -> bool:
            verifier = primitive_from_keyset(request.public_keyset, Family.VERIFY)
            verifier.verify(request.signature, request.data)
            return True

        return await run_operation("signature.verify", _op)
