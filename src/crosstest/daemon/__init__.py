"""JSON-RPC server for the conformance services."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = ["ConformanceServer", "main"]


def __getattr__(name: str) -> Any:  # pragma: no cover - thin wrapper
    if name in {"ConformanceServer", "main"}:
        from .server import ConformanceServer, main

        globals().update({"ConformanceServer": ConformanceServer, "main": main})
        return globals()[name]
    raise AttributeError(name)


if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .server import ConformanceServer, main  # noqa: F401
