"""Async JSON-RPC server exposing the conformance services."""
from __future__ import annotations

import argparse
import asyncio
import time
from pathlib import Path
from typing import Any, Dict, Iterable

import structlog

from ..config import ServerConfig, load_config
from ..ipc.transport import (
    BaseConnection,
    ConnectionClosed,
    FrameTooLarge,
    TCPTransport,
    create_transport,
)
from ..logging import configure_logging
from ..services import build_registry
from .protocol import (
    INVALID_REQUEST,
    JSONRPCResponse,
    MethodContext,
    MethodRegistry,
    ProtocolError,
    RequestTimeout,
    RPCError,
    make_error_response,
    make_response,
    parse_request,
)

logger = structlog.get_logger(__name__)


class ConformanceServer:
    """Serves every registered method over one transport.

    Each connection is handled concurrently and each request on it runs as its
    own task, so responses may arrive out of order.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        registry: MethodRegistry | None = None,
    ) -> None:
        self.config = config or ServerConfig()
        self._registry = registry or build_registry()
        self._transport = create_transport(self.config)
        self._shutdown = asyncio.Event()
        self._started = asyncio.Event()
        self._start_time = time.monotonic()
        self._request_count = 0
        self._connections: set[int] = set()

    @property
    def request_timeout(self) -> float:
        return self.config.limits.request_timeout

    @property
    def stream_chunk_bytes(self) -> int:
        return self.config.limits.stream_chunk_bytes

    @property
    def endpoint(self) -> str:
        return self._transport.endpoint

    @property
    def port(self) -> int | None:
        if isinstance(self._transport, TCPTransport):
            return self._transport.bound_port
        return None

    async def start(self) -> None:
        await self._transport.start(self._handle_connection)
        self._start_time = time.monotonic()
        self._started.set()
        logger.info("server.start", endpoint=self.endpoint, methods=len(self._registry))

    async def wait_started(self) -> None:
        await self._started.wait()

    async def serve_forever(self) -> None:
        await self.start()
        await self._shutdown.wait()
        await self._transport.close()
        logger.info("server.stop", requests=self._request_count)

    async def stop(self) -> None:
        self._shutdown.set()

    def status(self) -> Dict[str, Any]:
        return {
            "uptime": time.monotonic() - self._start_time,
            "requests": self._request_count,
            "connections": len(self._connections),
        }

    async def _handle_connection(self, connection: BaseConnection) -> None:
        conn_id = id(connection)
        self._connections.add(conn_id)
        logger.info("server.connection.opened", connection=conn_id, peer=connection.peer)
        tasks: set[asyncio.Task[None]] = set()
        try:
            while not self._shutdown.is_set():
                try:
                    payload = await connection.receive()
                except FrameTooLarge as exc:
                    rejection = ProtocolError(INVALID_REQUEST, "Request too large", detail=exc.limit)
                    await self._send(connection, rejection.to_response())
                    break
                except ConnectionClosed:
                    break

                if not payload.strip():
                    continue
                task = asyncio.create_task(self._serve_request(connection, payload))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
        finally:
            for task in list(tasks):
                task.cancel()
            await connection.close()
            self._connections.discard(conn_id)
            logger.info("server.connection.closed", connection=conn_id)

    async def _serve_request(self, connection: BaseConnection, payload: str) -> None:
        response = await self._dispatch_request(connection, payload)
        if response is not None:
            await self._send(connection, response)

    async def _dispatch_request(
        self, connection: BaseConnection, payload: str
    ) -> JSONRPCResponse | None:
        try:
            request = parse_request(payload)
        except ProtocolError as exc:
            logger.debug("rpc.rejected", code=exc.code)
            return exc.to_response()

        context = MethodContext(server=self, connection=connection)
        self._request_count += 1
        try:
            result = await asyncio.wait_for(
                self._registry.dispatch(context, request), timeout=self.request_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("rpc.timeout", method=request.method, timeout=self.request_timeout)
            response = make_error_response(request, RequestTimeout(request.method).error)
        except RPCError as exc:
            response = make_error_response(request, exc.error)
        else:
            response = make_response(request, result)

        # Notifications are never answered, not even with an error.
        return None if request.is_notification else response

    async def _send(self, connection: BaseConnection, response: JSONRPCResponse) -> None:
        try:
            await connection.send(response.model_dump_json())
        except ConnectionClosed:
            logger.debug("server.connection.lost", connection=id(connection))


def apply_overrides(
    config: ServerConfig,
    *,
    port: int | None = None,
    host: str | None = None,
    socket: Path | None = None,
) -> ServerConfig:
    """Return a validated copy of ``config`` with command line overrides applied."""

    data = config.model_dump()
    if socket is not None:
        data["ipc"].update(transport="uds", socket_path=socket)
    if host is not None:
        data["ipc"]["tcp_host"] = host
    if port is not None:
        data["ipc"].update(transport="tcp", tcp_port=port)
    return ServerConfig.model_validate(data)


async def _async_main(args: argparse.Namespace) -> None:
    config = apply_overrides(load_config(args.config), port=args.port, host=args.host, socket=args.socket)
    configure_logging(config.logging.normalized_level())
    server = ConformanceServer(config)
    try:
        await server.serve_forever()
    except asyncio.CancelledError:  # pragma: no cover - cancellation path
        pass


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the crosstest conformance server")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML configuration file")
    parser.add_argument("--port", type=int, default=None, help="Listen on this TCP port")
    parser.add_argument("--host", type=str, default=None, help="Loopback host to bind")
    parser.add_argument("--socket", type=Path, default=None, help="Listen on a Unix socket instead")
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        asyncio.run(_async_main(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
