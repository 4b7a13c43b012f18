"""Keyset data model and codecs.

:mod:`crosstest.keyset.handle` and :mod:`crosstest.keyset.templates` depend on
the key managers in :mod:`crosstest.crypto` and are imported directly.
"""
from __future__ import annotations

from .models import (
    EncryptedKeyset,
    Key,
    KeyData,
    KeyInfo,
    KeyMaterialType,
    Keyset,
    KeysetEncoding,
    KeysetInfo,
    KeyStatus,
    KeyTemplate,
    OutputPrefixType,
)

__all__ = [
    "EncryptedKeyset",
    "Key",
    "KeyData",
    "KeyInfo",
    "KeyMaterialType",
    "Keyset",
    "KeysetEncoding",
    "KeysetInfo",
    "KeyStatus",
    "KeyTemplate",
    "OutputPrefixType",
]
