"""Parsing of serialized ``tink.proto`` messages.

Keysets, templates and key protos are the generated classes shipped with the
``tink`` distribution. Parse failures surface as :class:`DecodeError` so the
RPC layer reports them like any other keyset failure.
"""
from __future__ import annotations

from typing import Type, TypeVar

from google.protobuf import message as pb_message

from ..exceptions import DecodeError

MessageT = TypeVar("MessageT", bound=pb_message.Message)


def parse(message_type: Type[MessageT], data: bytes) -> MessageT:
    message = message_type()
    try:
        message.ParseFromString(bytes(data))
    except pb_message.DecodeError as exc:
        raise DecodeError(f"malformed {message_type.DESCRIPTOR.name}: {exc}") from exc
    return message


__all__ = ["parse"]
