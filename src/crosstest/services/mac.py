"""MAC service."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import ComputeMacParams, KeysetParams, VerifyMacParams


def register(registry: MethodRegistry) -> None:
    @registry.method("mac.create")
    async def _create(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation("mac.create", lambda: create(request.keyset, Family.MAC))

    @registry.method("mac.compute_mac")
    async def _compute(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = ComputeMacParams.model_validate(params)

        def _op() -> bytes:
            return primitive_from_keyset(request.keyset, Family.MAC).compute_mac(request.data)

        return await run_operation("mac.compute_mac", _op)

    @registry.method("mac.verify_mac")
    async def _verify(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = VerifyMacParams.model_validate(params)

        def _op() -> bool:
            primitive_from_keyset(request.keyset, Family.MAC).verify_mac(request.mac_value, request.data)
            return True

        return await run_operation("mac.verify_mac", _op)
