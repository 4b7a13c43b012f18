"""JSON-RPC 2.0 framing objects and the method table the server dispatches to."""
from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, Iterator, List, Literal, Mapping, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

IDType = int | str | None

logger = structlog.get_logger(__name__)


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    REQUEST_TIMEOUT = -32000


PARSE_ERROR = int(ErrorCode.PARSE_ERROR)
INVALID_REQUEST = int(ErrorCode.INVALID_REQUEST)
METHOD_NOT_FOUND = int(ErrorCode.METHOD_NOT_FOUND)
INVALID_PARAMS = int(ErrorCode.INVALID_PARAMS)
INTERNAL_ERROR = int(ErrorCode.INTERNAL_ERROR)
REQUEST_TIMEOUT = int(ErrorCode.REQUEST_TIMEOUT)


class _Frame(BaseModel):
    model_config = ConfigDict(extra="forbid")

    jsonrpc: Literal["2.0"] = "2.0"


class JSONRPCError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: int
    message: str
    data: Any | None = None


class JSONRPCRequest(_Frame):
    """A call from the test harness. ``id`` is ``None`` for notifications."""

    id: IDType = None
    method: str
    params: Mapping[str, Any] | List[Any] | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JSONRPCResponse(_Frame):
    id: IDType = None
    result: Any | None = None
    error: JSONRPCError | None = None


class ProtocolError(Exception):
    """A frame that is not a usable JSON-RPC request.

    ``code`` is ``PARSE_ERROR`` for text that is not JSON and
    ``INVALID_REQUEST`` for JSON that does not describe a request. ``request_id``
    is recovered when the frame carried a usable one.
    """

    def __init__(self, code: int, message: str, *, request_id: IDType = None, detail: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.request_id = request_id
        self.detail = detail

    def to_response(self) -> JSONRPCResponse:
        error = JSONRPCError(code=self.code, message=str(self), data=self.detail)
        return JSONRPCResponse(id=self.request_id, error=error)


class RPCError(Exception):
    """Raised while handling a request to answer with a JSON-RPC error."""

    def __init__(self, code: int, message: str, *, data: Any | None = None) -> None:
        super().__init__(message)
        self.error = JSONRPCError(code=int(code), message=message, data=data)


class MethodNotFound(RPCError):
    def __init__(self, method: str) -> None:
        super().__init__(METHOD_NOT_FOUND, "Method not found", data=method)


class InvalidParams(RPCError):
    def __init__(self, message: str, data: Any | None = None) -> None:
        super().__init__(INVALID_PARAMS, message, data=data)


class RequestTimeout(RPCError):
    def __init__(self, method: str) -> None:
        super().__init__(REQUEST_TIMEOUT, "Request timed out", data=method)


@dataclass(slots=True)
class MethodContext:
    server: Any
    connection: Any


class MethodHandler(Protocol):
    def __call__(self, context: MethodContext, params: Dict[str, Any]) -> Any:  # pragma: no cover - protocol
        ...


class MethodRegistry:
    """Method name to handler table.

    Handlers receive the call context and the request's params as a dict and
    may be plain functions or coroutines. Pydantic validation failures raised
    inside a handler are reported as ``INVALID_PARAMS``; any other exception
    that is not an :class:`RPCError` is logged and reported as
    ``INTERNAL_ERROR``.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, MethodHandler] = {}

    def register(self, name: str, handler: MethodHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"Handler already registered for {name}")
        self._handlers[name] = handler

    def method(self, name: str) -> Callable[[MethodHandler], MethodHandler]:
        def decorator(func: MethodHandler) -> MethodHandler:
            self.register(name, func)
            return func

        return decorator

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._handlers))

    def __len__(self) -> int:
        return len(self._handlers)

    async def dispatch(self, context: MethodContext, request: JSONRPCRequest) -> Any:
        try:
            handler = self._handlers[request.method]
        except KeyError:
            raise MethodNotFound(request.method) from None
        params = _params_as_dict(request.params)
        try:
            outcome = handler(context, params)
            return await outcome if inspect.isawaitable(outcome) else outcome
        except RPCError:
            raise
        except ValidationError as exc:
            details = exc.errors(include_url=False, include_context=False)
            raise InvalidParams("Invalid parameters", data=details) from exc
        except Exception as exc:
            logger.error("rpc.internal_fault", method=request.method, exc_info=True)
            raise RPCError(INTERNAL_ERROR, "Internal error", data=str(exc)) from exc


def parse_request(payload: str | bytes) -> JSONRPCRequest:
    """Decode one frame into a request or raise :class:`ProtocolError`."""

    try:
        document = json.loads(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ProtocolError(PARSE_ERROR, "Parse error", detail=str(exc)) from exc
    try:
        return JSONRPCRequest.model_validate(document)
    except ValidationError as exc:
        raise ProtocolError(
            INVALID_REQUEST,
            "Invalid request",
            request_id=_salvage_id(document),
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


def make_response(request: JSONRPCRequest, result: Any) -> JSONRPCResponse:
    return JSONRPCResponse(id=request.id, result=result)


def make_error_response(request: JSONRPCRequest | None, error: JSONRPCError) -> JSONRPCResponse:
    return JSONRPCResponse(id=None if request is None else request.id, error=error)


def _salvage_id(document: Any) -> IDType:
    if isinstance(document, dict):
        candidate = document.get("id")
        if isinstance(candidate, (int, str)) and not isinstance(candidate, bool):
            return candidate
    return None


def _params_as_dict(params: Mapping[str, Any] | List[Any] | None) -> Dict[str, Any]:
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return dict(params)
    # A one-element array wrapping an object is accepted as by-name params.
    if len(params) == 1 and isinstance(params[0], Mapping):
        return dict(params[0])
    raise InvalidParams("Positional parameters are not supported", data=params)


__all__ = [
    "IDType",
    "ErrorCode",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "REQUEST_TIMEOUT",
    "JSONRPCError",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "MethodContext",
    "MethodRegistry",
    "ProtocolError",
    "RPCError",
    "MethodNotFound",
    "InvalidParams",
    "RequestTimeout",
    "parse_request",
    "make_response",
    "make_error_response",
]
