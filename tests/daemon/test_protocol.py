import asyncio
import json

import pytest
from pydantic import BaseModel

from crosstest.daemon.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JSONRPCError,
    JSONRPCRequest,
    MethodContext,
    MethodRegistry,
    ProtocolError,
    RPCError,
    make_error_response,
    make_response,
    parse_request,
)


def _dispatch(registry: MethodRegistry, request: JSONRPCRequest):
    return asyncio.run(registry.dispatch(MethodContext(server=None, connection=None), request))


def test_parse_request_roundtrip() -> None:
    payload = json.dumps({"jsonrpc": "2.0", "id": 1, "method": "aead.create", "params": {}})
    request = parse_request(payload)
    assert request.method == "aead.create"
    assert request.id == 1
    response = make_response(request, {"result": True, "error": None})
    assert response.model_dump() == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {"result": True, "error": None},
        "error": None,
    }


@pytest.mark.parametrize("payload", ["not json", "{\"method\": ", b"\x80\x81"])
def test_unparseable_frames_are_parse_errors(payload) -> None:
    with pytest.raises(ProtocolError) as excinfo:
        parse_request(payload)
    assert excinfo.value.code == PARSE_ERROR
    assert excinfo.value.to_response().id is None


@pytest.mark.parametrize(
    "payload",
    ["{}", "[]", "3", '{"method": "x", "surprise": 1}', '{"jsonrpc": "1.0", "method": "x"}'],
)
def test_malformed_requests_are_invalid_requests(payload: str) -> None:
    with pytest.raises(ProtocolError) as excinfo:
        parse_request(payload)
    assert excinfo.value.code == INVALID_REQUEST


def test_invalid_request_keeps_its_id() -> None:
    with pytest.raises(ProtocolError) as excinfo:
        parse_request(json.dumps({"jsonrpc": "2.0", "id": 12, "params": {}}))
    response = excinfo.value.to_response()
    assert response.id == 12
    assert response.error is not None and response.error.code == INVALID_REQUEST


def test_requests_without_id_are_notifications() -> None:
    assert parse_request('{"jsonrpc": "2.0", "method": "x"}').is_notification
    assert not parse_request('{"jsonrpc": "2.0", "id": 0, "method": "x"}').is_notification


def test_method_registry_dispatch_sync() -> None:
    registry = MethodRegistry()

    @registry.method("test.ping")
    def handler(context: MethodContext, params: dict[str, object]) -> dict[str, object]:
        assert context.server is None
        return {"pong": True}

    assert _dispatch(registry, JSONRPCRequest(method="test.ping", id=5)) == {"pong": True}


def test_method_registry_dispatch_async() -> None:
    registry = MethodRegistry()

    @registry.method("test.echo")
    async def handler(_context: MethodContext, params: dict[str, object]) -> dict[str, object]:
        await asyncio.sleep(0)
        return {"echo": params["value"]}

    request = JSONRPCRequest(method="test.echo", params={"value": 42}, id=7)
    assert _dispatch(registry, request) == {"echo": 42}


def test_single_object_in_positional_params_is_accepted() -> None:
    registry = MethodRegistry()
    registry.register("test.echo", lambda _ctx, params: params)
    request = JSONRPCRequest(method="test.echo", params=[{"value": 1}], id=1)
    assert _dispatch(registry, request) == {"value": 1}


def test_positional_params_are_rejected() -> None:
    registry = MethodRegistry()
    registry.register("test.echo", lambda _ctx, params: params)
    with pytest.raises(RPCError) as excinfo:
        _dispatch(registry, JSONRPCRequest(method="test.echo", params=[1, 2], id=1))
    assert excinfo.value.error.code == INVALID_PARAMS


def test_method_registry_unknown_method() -> None:
    registry = MethodRegistry()
    with pytest.raises(RPCError) as excinfo:
        _dispatch(registry, JSONRPCRequest(method="missing", id=10))
    assert excinfo.value.error.code == METHOD_NOT_FOUND


def test_validation_errors_become_invalid_params() -> None:
    class Params(BaseModel):
        count: int

    registry = MethodRegistry()
    registry.register("test.count", lambda _ctx, params: Params.model_validate(params).count)
    with pytest.raises(RPCError) as excinfo:
        _dispatch(registry, JSONRPCRequest(method="test.count", params={"count": "many"}, id=1))
    assert excinfo.value.error.code == INVALID_PARAMS
    assert excinfo.value.error.data[0]["loc"] == ("count",)


def test_unexpected_exceptions_become_internal_errors() -> None:
    registry = MethodRegistry()

    def handler(_ctx: MethodContext, _params: dict[str, object]) -> None:
        raise RuntimeError("boom")

    registry.register("test.fail", handler)
    with pytest.raises(RPCError) as excinfo:
        _dispatch(registry, JSONRPCRequest(method="test.fail", id=1))
    assert excinfo.value.error.code == INTERNAL_ERROR


def test_make_error_response() -> None:
    request = JSONRPCRequest(method="test.fail", id=99)
    error = JSONRPCError(code=-32000, message="boom")
    response = make_error_response(request, error)
    assert response.error == error
    assert response.id == 99
    assert make_error_response(None, error).id is None


def test_method_registry_duplicate_registration() -> None:
    registry = MethodRegistry()

    def handler(_context: MethodContext, _params: dict[str, object]) -> dict[str, object]:
        return {"ok": True}

    registry.register("test.ping", handler)
    with pytest.raises(ValueError):
        registry.register("test.ping", handler)
