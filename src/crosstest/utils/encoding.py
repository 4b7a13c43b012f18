"""Base64 helpers for bytes carried inside JSON payloads."""
from __future__ import annotations

import base64
import binascii


def b64e(data: bytes) -> str:
    """URL-safe base64 encode without padding"""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64d(value: str) -> bytes:
    """URL-safe base64 decode that tolerates missing padding.

    The standard alphabet (``+`` and ``/``) is accepted as well so drivers can
    send whichever flavour their language produces.
    """

    cleaned = value.strip().rstrip("=").replace("+", "-").replace("/", "_")
    if len(cleaned) % 4 == 1:
        raise ValueError("Invalid base64 length")
    pad = "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode((cleaned + pad).encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc


__all__ = ["b64e", "b64d"]
