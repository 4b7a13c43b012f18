"""The ``{result, error}`` envelope every operation returns.

Domain failures become the ``error`` arm of a successful JSON-RPC response;
anything else propagates to the dispatcher as an internal fault.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict

import structlog
from cryptography.exceptions import InvalidKey, InvalidSignature, InvalidTag, UnsupportedAlgorithm
from pydantic import BaseModel, ConfigDict, field_serializer, model_validator

from ..exceptions import CrossTestError
from ..utils.encoding import b64e

DOMAIN_ERRORS = (CrossTestError, InvalidTag, InvalidSignature, InvalidKey, UnsupportedAlgorithm)

logger = structlog.get_logger(__name__)


class Envelope(BaseModel):
    result: Any = None
    error: str | None = None

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def _exactly_one_arm(self) -> "Envelope":
        if self.error is not None:
            if self.result is not None:
                raise ValueError("an envelope carries either a result or an error")
            if not self.error:
                raise ValueError("error message must not be empty")
        elif self.result is None:
            raise ValueError("an envelope must carry a result or an error")
        return self

    @field_serializer("result")
    def _serialize_result(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return b64e(bytes(value))
        return value

    @classmethod
    def success(cls, result: Any) -> "Envelope":
        return cls(result=result)

    @classmethod
    def failure(cls, exc: BaseException) -> "Envelope":
        return cls(error=str(exc) or type(exc).__name__)

    def as_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


async def run_operation(method: str, operation: Callable[[], Any]) -> Dict[str, Any]:
    """Run ``operation`` in a worker thread and wrap its outcome."""

    try:
        result = await asyncio.to_thread(operation)
    except DOMAIN_ERRORS as exc:
        envelope = Envelope.failure(exc)
        logger.info("rpc.failure", method=method, error=envelope.error, error_type=type(exc).__name__)
        return envelope.as_payload()
    return Envelope.success(result).as_payload()


__all__ = ["DOMAIN_ERRORS", "Envelope", "run_operation"]
