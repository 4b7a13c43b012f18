"""Central exception hierarchy.

Every exception defined here is a *domain* failure: the RPC layer reports it
to the driver inside the response envelope instead of failing the call.
"""
from __future__ import annotations


class CrossTestError(Exception):
    """Base exception for all domain failures"""


class KeysetError(CrossTestError):
    """Raised when a keyset or key template cannot be materialized"""


class DecodeError(KeysetError):
    """Raised when serialized bytes are truncated or malformed"""


class UnsupportedKeyTypeError(KeysetError):
    """Raised for unknown key types or key types that refuse new keys"""


class SecretMaterialError(KeysetError):
    """Raised when secret key material crosses a no-secret boundary"""


class PrimitiveError(CrossTestError):
    """Raised when a keyset cannot provide the requested primitive family"""


class CryptoError(CrossTestError):
    """Raised for cryptographic misuse or integrity failures"""


__all__ = [
    "CrossTestError",
    "KeysetError",
    "DecodeError",
    "UnsupportedKeyTypeError",
    "SecretMaterialError",
    "PrimitiveError",
    "CryptoError",
]
