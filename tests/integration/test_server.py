import asyncio
import json
import stat
import sys

import pytest

from crosstest.config import IPCConfig, LimitsConfig, ServerConfig
from crosstest.daemon.server import ConformanceServer
from crosstest.keyset import templates
from crosstest.keyset.handle import KeysetHandle
from crosstest.services import build_registry
from crosstest.utils.encoding import b64d, b64e


def _config(**limits) -> ServerConfig:
    return ServerConfig(
        ipc=IPCConfig(transport="tcp", tcp_host="127.0.0.1", tcp_port=0),
        limits=LimitsConfig(**limits),
    )


async def _start(config: ServerConfig):
    server = ConformanceServer(config)
    task = asyncio.create_task(server.serve_forever())
    await asyncio.wait_for(server.wait_started(), timeout=5)
    reader, writer = await asyncio.open_connection("127.0.0.1", server.port, limit=2**24)
    return server, task, reader, writer


async def _stop(server: ConformanceServer, task: asyncio.Task, writer: asyncio.StreamWriter) -> None:
    writer.close()
    await writer.wait_closed()
    await server.stop()
    await asyncio.wait_for(task, timeout=5)


async def _rpc(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, method: str, params=None, request_id=1):
    payload = json.dumps({"jsonrpc": "2.0", "method": method, "params": params or {}, "id": request_id})
    writer.write(payload.encode("utf-8") + b"\n")
    await writer.drain()
    response = await reader.readline()
    return json.loads(response.decode("utf-8"))


def _keyset(name: str) -> str:
    return b64e(KeysetHandle.generate_new(templates.get_template(name)).write())


@pytest.mark.asyncio
async def test_aead_roundtrip_over_tcp() -> None:
    server, task, reader, writer = await _start(_config())
    try:
        template = await _rpc(reader, writer, "keyset.get_template", {"template_name": "AES128_GCM"}, 1)
        keyset = await _rpc(reader, writer, "keyset.generate", {"template": template["result"]["result"]}, 2)
        keyset_b64 = keyset["result"]["result"]
        encrypted = await _rpc(
            reader, writer, "aead.encrypt", {"keyset": keyset_b64, "plaintext": b64e(b"hi"), "associated_data": ""}, 3
        )
        assert encrypted["id"] == 3
        decrypted = await _rpc(
            reader,
            writer,
            "aead.decrypt",
            {"keyset": keyset_b64, "ciphertext": encrypted["result"]["result"], "associated_data": ""},
            4,
        )
        assert b64d(decrypted["result"]["result"]) == b"hi"

        failed = await _rpc(
            reader,
            writer,
            "aead.decrypt",
            {"keyset": keyset_b64, "ciphertext": b64e(b"\x00" * 40), "associated_data": ""},
            5,
        )
        assert failed["error"] is None
        assert failed["result"]["result"] is None
        assert failed["result"]["error"]

        status = await _rpc(reader, writer, "metadata.get_status", None, 6)
        assert status["result"]["ok"] is True
        assert status["result"]["connections"] == 1
        assert status["result"]["requests"] >= 5
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_protocol_errors_over_tcp() -> None:
    server, task, reader, writer = await _start(_config())
    try:
        writer.write(b"{not json\n")
        await writer.drain()
        parse_error = json.loads(await reader.readline())
        assert parse_error["error"]["code"] == -32700
        assert parse_error["id"] is None

        unknown = await _rpc(reader, writer, "nope.nothing", None, 7)
        assert unknown["error"]["code"] == -32601
        assert unknown["id"] == 7

        invalid = await _rpc(reader, writer, "aead.encrypt", {"keyset": "***", "plaintext": ""}, 8)
        assert invalid["error"]["code"] == -32602
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_concurrent_requests_are_matched_by_id() -> None:
    server, task, reader, writer = await _start(_config())
    try:
        keyset = _keyset("HMAC_SHA256_PRF")
        for request_id in range(10, 20):
            params = {"keyset": keyset, "input_data": b64e(bytes([request_id])), "output_length": 16}
            payload = {"jsonrpc": "2.0", "id": request_id, "method": "prf.compute", "params": params}
            writer.write(json.dumps(payload).encode("utf-8") + b"\n")
        await writer.drain()
        responses = [json.loads(await reader.readline()) for _ in range(10)]
        assert sorted(response["id"] for response in responses) == list(range(10, 20))
        assert all(len(b64d(response["result"]["result"])) == 16 for response in responses)
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_streaming_payload_spanning_many_segments() -> None:
    server, task, reader, writer = await _start(_config(stream_chunk_bytes=1000))
    try:
        keyset = _keyset("AES128_GCM_HKDF_4KB")
        plaintext = bytes(range(256)) * 4096
        encrypted = await _rpc(
            reader, writer, "streaming_aead.encrypt", {"keyset": keyset, "plaintext": b64e(plaintext)}, 1
        )
        ciphertext = encrypted["result"]["result"]
        decrypted = await _rpc(reader, writer, "streaming_aead.decrypt", {"keyset": keyset, "ciphertext": ciphertext}, 2)
        assert b64d(decrypted["result"]["result"]) == plaintext
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_oversize_frame_is_rejected_and_connection_closed() -> None:
    server, task, reader, writer = await _start(_config(max_request_bytes=4096, stream_chunk_bytes=1024))
    try:
        writer.write(b"x" * 5000 + b"\n")
        await writer.drain()
        response = json.loads(await reader.readline())
        assert response["error"]["code"] == -32600
        assert await reader.read() == b""
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_request_timeout() -> None:
    registry = build_registry()

    @registry.method("test.slow")
    async def _slow(_ctx, _params):
        await asyncio.sleep(1)
        return {}

    server = ConformanceServer(_config(request_timeout=0.05), registry=registry)
    task = asyncio.create_task(server.serve_forever())
    await asyncio.wait_for(server.wait_started(), timeout=5)
    reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
    try:
        response = await _rpc(reader, writer, "test.slow", None, 3)
        assert response["error"]["code"] == -32000
        assert response["id"] == 3
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_notifications_get_no_response() -> None:
    server, task, reader, writer = await _start(_config())
    try:
        notification = {"jsonrpc": "2.0", "method": "nope.nothing", "params": {}}
        writer.write(json.dumps(notification).encode("utf-8") + b"\n")
        await writer.drain()
        response = await _rpc(reader, writer, "metadata.get_server_info", None, 21)
        assert response["id"] == 21
        assert response["result"]["language"] == "python"
    finally:
        await _stop(server, task, writer)


@pytest.mark.asyncio
async def test_invalid_request_over_tcp_keeps_id() -> None:
    server, task, reader, writer = await _start(_config())
    try:
        writer.write(b'{"jsonrpc": "2.0", "id": 4, "params": {}}\n')
        await writer.drain()
        response = json.loads(await reader.readline())
        assert response["error"]["code"] == -32600
        assert response["id"] == 4
    finally:
        await _stop(server, task, writer)


@pytest.mark.skipif(sys.platform == "win32", reason="Unix domain sockets")
@pytest.mark.asyncio
async def test_unix_socket_transport(tmp_path) -> None:
    socket_path = tmp_path / "ct.sock"
    server = ConformanceServer(ServerConfig(ipc=IPCConfig(transport="uds", socket_path=socket_path)))
    task = asyncio.create_task(server.serve_forever())
    await asyncio.wait_for(server.wait_started(), timeout=5)
    assert server.port is None
    assert stat.S_IMODE(socket_path.stat().st_mode) == 0o600
    reader, writer = await asyncio.open_unix_connection(str(socket_path))
    try:
        response = await _rpc(reader, writer, "mac.compute_mac", {"keyset": _keyset("HMAC_SHA256_128BITTAG"), "data": ""}, 1)
        assert len(b64d(response["result"]["result"])) == 21
    finally:
        await _stop(server, task, writer)
    assert not socket_path.exists()
