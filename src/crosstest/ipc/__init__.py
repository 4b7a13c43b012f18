"""Socket transports for the JSON-RPC server."""
from __future__ import annotations

from .transport import (
    BaseConnection,
    BaseTransport,
    ConnectionClosed,
    FrameTooLarge,
    TCPTransport,
    UnixSocketTransport,
    create_transport,
)

__all__ = [
    "BaseConnection",
    "BaseTransport",
    "ConnectionClosed",
    "FrameTooLarge",
    "TCPTransport",
    "UnixSocketTransport",
    "create_transport",
]
