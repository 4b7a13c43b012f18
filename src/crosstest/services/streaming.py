"""Streaming AEAD service.

Payloads arrive whole in one frame but are pushed through the segmented
stream ``chunk_size`` bytes at a time.
"""
from __future__ import annotations

import io
from typing import Any, Dict

from ..config import DEFAULT_STREAM_CHUNK_BYTES
from ..daemon.protocol import MethodContext, MethodRegistry
from ..families import Family, StreamingAead
from .common import create, primitive_from_keyset
from .envelope import run_operation
from .messages import DecryptParams, EncryptParams, KeysetParams


def _chunk_size(ctx: MethodContext) -> int:
    return getattr(ctx.server, "stream_chunk_bytes", DEFAULT_STREAM_CHUNK_BYTES)


def encrypt(keyset: bytes, plaintext: bytes, associated_data: bytes, chunk_size: int) -> bytes:
    streaming: StreamingAead = primitive_from_keyset(keyset, Family.STREAMING_AEAD)
    destination = io.BytesIO()
    streaming.encrypt_stream(io.BytesIO(plaintext), destination, associated_data, chunk_size)
    return destination.getvalue()


def decrypt(keyset: bytes, ciphertext: bytes, associated_data: bytes, chunk_size: int) -> bytes:
    streaming: StreamingAead = primitive_from_keyset(keyset, Family.STREAMING_AEAD)
    destination = io.BytesIO()
    streaming.decrypt_stream(io.BytesIO(ciphertext), destination, associated_data, chunk_size)
    return destination.getvalue()


def register(registry: MethodRegistry) -> None:
    @registry.method("streaming_aead.create")
    async def _create(_ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = KeysetParams.model_validate(params)
        return await run_operation(
            "streaming_aead.create", lambda: create(request.keyset, Family.STREAMING_AEAD)
        )

    @registry.method("streaming_aead.encrypt")
    async def _encrypt(ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = EncryptParams.model_validate(params)
        chunk_size = _chunk_size(ctx)
        return await run_operation(
            "streaming_aead.encrypt",
            lambda: encrypt(request.keyset, request.plaintext, request.associated_data, chunk_size),
        )

    @registry.method("streaming_aead.decrypt")
    async def _decrypt(ctx: MethodContext, params: Dict[str, Any]) -> Dict[str, Any]:
        request = DecryptParams.model_validate(params)
        chunk_size = _chunk_size(ctx)
        return await run_operation(
            "streaming_aead.decrypt",
            lambda: decrypt(request.keyset, request.ciphertext, request.associated_data, chunk_size),
        )
