"""RPC services exposed by the conformance server."""
from __future__ import annotations

from ..daemon.protocol import MethodRegistry
from . import aead, daead, hybrid, keyset, mac, metadata, prf, signature, streaming

_SERVICES = (aead, daead, mac, prf, signature, hybrid, streaming, keyset, metadata)


def register_services(registry: MethodRegistry) -> MethodRegistry:
    for service in _SERVICES:
        service.register(registry)
    return registry


def build_registry() -> MethodRegistry:
    return register_services(MethodRegistry())


__all__ = ["register_services", "build_registry"]
