"""PRF set service."""
from __future__ import annotations

from typing import Any, Dict

from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import KeysetParams, PrfComputeParams


def register(registry: MethodRegistry) -> None:
    @registry.method("prf.create")
    async def _create(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation("prf.create", lambda: create(request.keyset, Family.PRF))

    @registry.method("prf.key_ids")
    async def _key_ids(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)

        def _op() -> Dict[str, Any]:
            prf_set = primitive_from_keyset(request.keyset, Family.PRF)
            return {"primary_key_id": prf_set.primary_key_id, "key_ids": prf_set.key_ids()}

        return await run_operation("prf.key_ids", _op)

    @registry.method("prf.compute")
    async def _compute(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = PrfComputeParams.model_validate(params)

        def _op() -> bytes:
            prf_set = primitive_from_keyset(request.keyset, Family.PRF)
            return prf_set.compute(request.input_data, request.output_length, request.key_id)

        return await run_operation("prf.compute", _op)
