"""Newline-delimited socket transports."""
from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from asyncio import StreamReader, StreamWriter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Set

from ..config import DEFAULT_MAX_REQUEST_BYTES, ServerConfig
from ..paths import default_unix_socket_path
from ..utils.validation import ensure_loopback_host, resolve_socket_path

MessageHandler = Callable[["BaseConnection"], Awaitable[None]]


class ConnectionClosed(RuntimeError):
    """Raised when a connection is closed unexpectedly."""


class FrameTooLarge(RuntimeError):
    """Raised when a frame exceeds the configured size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"frame exceeds {limit} bytes")
        self.limit = limit


class BaseConnection(ABC):
    """One client stream carrying newline-terminated JSON frames."""

    @property
    @abstractmethod
    def peer(self) -> str:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def receive(self) -> str:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def send(self, payload: str) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def close(self) -> None:  # pragma: no cover - interface
        ...


@dataclass(eq=False)
class SocketConnection(BaseConnection):
    reader: StreamReader
    writer: StreamWriter
    limit: int = DEFAULT_MAX_REQUEST_BYTES
    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def peer(self) -> str:
        address = self.writer.get_extra_info("peername")
        if isinstance(address, tuple) and len(address) >= 2:
            return f"{address[0]}:{address[1]}"
        return str(address or "local")

    async def receive(self) -> str:
        try:
            data = await self.reader.readline()
        except (asyncio.LimitOverrunError, ValueError) as exc:
            raise FrameTooLarge(self.limit) from exc
        except ConnectionResetError as exc:
            raise ConnectionClosed("connection reset") from exc
        if not data:
            raise ConnectionClosed("socket closed")
        if not data.endswith(b"\n") and len(data) > self.limit:
            raise FrameTooLarge(self.limit)
        return data.decode("utf-8", errors="replace").rstrip("\r\n")

    async def send(self, payload: str) -> None:
        message = payload.encode("utf-8") + b"\n"
        async with self._send_lock:
            if self.writer.is_closing():
                raise ConnectionClosed("socket closed")
            self.writer.write(message)
            try:
                await self.writer.drain()
            except ConnectionResetError as exc:
                raise ConnectionClosed("connection reset") from exc

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        with contextlib.suppress(ConnectionResetError, BrokenPipeError):
            await self.writer.wait_closed()


class BaseTransport(ABC):
    def __init__(self, max_frame_bytes: int = DEFAULT_MAX_REQUEST_BYTES) -> None:
        self._clients: Set[BaseConnection] = set()
        self.max_frame_bytes = max_frame_bytes

    @abstractmethod
    async def start(self, handler: MessageHandler) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def close(self) -> None:  # pragma: no cover - interface
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:  # pragma: no cover - interface
        ...


class _SocketTransport(BaseTransport):
    def __init__(self, max_frame_bytes: int = DEFAULT_MAX_REQUEST_BYTES) -> None:
        super().__init__(max_frame_bytes)
        self._server: asyncio.base_events.Server | None = None

    async def _serve(
        self,
        handler: MessageHandler,
        create_server: Callable[..., Awaitable[asyncio.base_events.Server]],
        **kwargs,
    ) -> None:
        async def _client_connected(reader: StreamReader, writer: StreamWriter) -> None:
            connection = SocketConnection(reader=reader, writer=writer, limit=self.max_frame_bytes)
            self._clients.add(connection)
            try:
                await handler(connection)
            finally:
                self._clients.discard(connection)
                await connection.close()

        # The stream limit doubles as the frame limit; one byte is left for the newline.
        self._server = await create_server(_client_connected, limit=self.max_frame_bytes + 1, **kwargs)

    async def close(self) -> None:
        if self._server:
            self._server.close()
        for client in list(self._clients):
            await client.close()
        self._clients.clear()
        if self._server:
            await self._server.wait_closed()


class UnixSocketTransport(_SocketTransport):
    def __init__(self, path: Path, max_frame_bytes: int = DEFAULT_MAX_REQUEST_BYTES) -> None:
        super().__init__(max_frame_bytes)
        self.path = path

    @property
    def endpoint(self) -> str:
        return str(self.path)

    async def start(self, handler: MessageHandler) -> None:
        self.path.unlink(missing_ok=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        await self._serve(handler, asyncio.start_unix_server, path=str(self.path))
        # Only the owning user may connect.
        self.path.chmod(0o600)

    async def close(self) -> None:
        await super().close()
        self.path.unlink(missing_ok=True)


class TCPTransport(_SocketTransport):
    def __init__(self, host: str, port: int, max_frame_bytes: int = DEFAULT_MAX_REQUEST_BYTES) -> None:
        super().__init__(max_frame_bytes)
        self.host = ensure_loopback_host(host)
        self.port = port

    @property
    def bound_port(self) -> int:
        """The listening port; differs from ``port`` when ``port`` is 0."""
        if self._server and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self.port

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.bound_port}"

    async def start(self, handler: MessageHandler) -> None:
        await self._serve(handler, asyncio.start_server, host=self.host, port=self.port)


def create_transport(config: ServerConfig) -> BaseTransport:
    ipc_config = config.ipc
    limit = config.limits.max_request_bytes
    if ipc_config.transport == "uds":
        socket_path = resolve_socket_path(ipc_config.socket_path or default_unix_socket_path())
        return UnixSocketTransport(socket_path, limit)
    if ipc_config.transport == "tcp":
        return TCPTransport(ipc_config.tcp_host, ipc_config.tcp_port, limit)
    raise ValueError(f"Unknown transport: {ipc_config.transport}")


__all__ = [
    "BaseConnection",
    "BaseTransport",
    "ConnectionClosed",
    "FrameTooLarge",
    "SocketConnection",
    "TCPTransport",
    "UnixSocketTransport",
    "create_transport",
]
