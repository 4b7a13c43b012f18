"""Server metadata: identity and runtime status."""
from __future__ import annotations

import platform
from typing import Any, Dict

from cryptography import __version__ as cryptography_version

from ..daemon.protocol import MethodContext, MethodRegistry
from ..version import __version__


def server_info() -> Dict[str, Any]:
    return {
        "language": "python",
        "version": __version__,
        "python_version": platform.python_version(),
        "primitive_library": f"cryptography {cryptography_version}",
    }


def register(registry: MethodRegistry) -> None:
    @registry.method("metadata.get_server_info")
    async def _get_server_info(_ctx: MethodContext, _params: Dict[str, Any]) -> Dict[str, Any]:
        return server_info()

    @registry.method("metadata.get_status")
    async def _get_status(ctx: MethodContext, _params: Dict[str, Any]) -> Dict[str, Any]:
        status = getattr(ctx.server, "status", None)
        if status is None:
            return {"ok": True}
        return {"ok": True, **status()}
