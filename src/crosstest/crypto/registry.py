"""Key managers and the registry that maps type URLs onto them."""
from __future__ import annotations

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping

from ..exceptions import KeysetError, UnsupportedKeyTypeError
from ..families import Family
from ..keyset.models import KeyData, KeyMaterialType


class KeyManager(ABC):
    """Creates keys of one type and turns them into primitives.

    Subclasses set ``type_url``, ``family`` and ``key_material_type`` and
    implement key generation and primitive construction over serialized key
    protos.
    """

    type_url: str
    family: Family
    key_material_type: KeyMaterialType = KeyMaterialType.SYMMETRIC
    allows_new_keys: bool = True

    @abstractmethod
    def new_key_value(self, key_format: bytes) -> bytes:  # pragma: no cover - interface
        ...

    @abstractmethod
    def primitive(self, key_value: bytes) -> Any:  # pragma: no cover - interface
        ...

    def new_key_data(self, key_format: bytes) -> KeyData:
        if not self.allows_new_keys:
            raise UnsupportedKeyTypeError(f"key type {self.type_url} does not allow new keys")
        return KeyData(
            type_url=self.type_url,
            value=self.new_key_value(key_format),
            key_material_type=self.key_material_type,
        )


class PublicKeyManager(KeyManager):
    key_material_type = KeyMaterialType.ASYMMETRIC_PUBLIC
    allows_new_keys = False

    def new_key_value(self, key_format: bytes) -> bytes:
        raise UnsupportedKeyTypeError(f"key type {self.type_url} does not allow new keys")


class PrivateKeyManager(KeyManager):
    key_material_type = KeyMaterialType.ASYMMETRIC_PRIVATE
    public_type_url: str

    @abstractmethod
    def public_key_value(self, private_value: bytes) -> bytes:  # pragma: no cover - interface
        ...

    def public_key_data(self, private_value: bytes) -> KeyData:
        return KeyData(
            type_url=self.public_type_url,
            value=self.public_key_value(private_value),
            key_material_type=KeyMaterialType.ASYMMETRIC_PUBLIC,
        )


class KeyManagerRegistry:
    """Type URL to key manager lookup; read-only once frozen."""

    def __init__(self) -> None:
        self._managers: Dict[str, KeyManager] = {}
        self._frozen = False

    def register(self, manager: KeyManager) -> None:
        if self._frozen:
            raise RuntimeError("registry is frozen")
        if manager.type_url in self._managers:
            raise ValueError(f"Key manager already registered for {manager.type_url}")
        self._managers[manager.type_url] = manager

    def freeze(self) -> "KeyManagerRegistry":
        self._frozen = True
        self._managers = MappingProxyType(dict(self._managers))  # type: ignore[assignment]
        return self

    @property
    def managers(self) -> Mapping[str, KeyManager]:
        return self._managers

    def get(self, type_url: str) -> KeyManager:
        manager = self._managers.get(type_url)
        if manager is None:
            raise UnsupportedKeyTypeError(f"unknown key type {type_url!r}")
        return manager

    def private(self, type_url: str) -> PrivateKeyManager:
        manager = self.get(type_url)
        if not isinstance(manager, PrivateKeyManager):
            raise KeysetError(f"key type {type_url} is not a private key type")
        return manager

    def __contains__(self, type_url: object) -> bool:
        return type_url in self._managers

    def __iter__(self) -> Iterator[str]:
        return iter(self._managers)


__all__ = ["KeyManager", "PublicKeyManager", "PrivateKeyManager", "KeyManagerRegistry"]
