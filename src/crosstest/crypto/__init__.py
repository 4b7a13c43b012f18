"""Key managers for every supported key type, built on ``cryptography``."""
from __future__ import annotations

from .aead import (
    AesCtrHmacAeadKeyManager,
    AesGcmKeyManager,
    AesGcmSivKeyManager,
    ChaCha20Poly1305KeyManager,
)
from .daead import AesSivKeyManager
from .hybrid import EciesAeadHkdfPrivateKeyManager, EciesAeadHkdfPublicKeyManager
from .mac import AesCmacKeyManager, HmacKeyManager
from .prf import AesCmacPrfKeyManager, HkdfPrfKeyManager, HmacPrfKeyManager
from .registry import KeyManager, KeyManagerRegistry, PrivateKeyManager, PublicKeyManager
from .signature import (
    EcdsaPrivateKeyManager,
    EcdsaPublicKeyManager,
    Ed25519PrivateKeyManager,
    Ed25519PublicKeyManager,
    RsaSsaPkcs1PrivateKeyManager,
    RsaSsaPkcs1PublicKeyManager,
    RsaSsaPssPrivateKeyManager,
    RsaSsaPssPublicKeyManager,
)
from .streaming import AesGcmHkdfStreamingKeyManager


def _build_registry() -> KeyManagerRegistry:
    registry = KeyManagerRegistry()
    for manager_type in (
        AesGcmKeyManager,
        AesGcmSivKeyManager,
        ChaCha20Poly1305KeyManager,
        AesCtrHmacAeadKeyManager,
        AesSivKeyManager,
        HmacKeyManager,
        AesCmacKeyManager,
        HmacPrfKeyManager,
        HkdfPrfKeyManager,
        AesCmacPrfKeyManager,
        Ed25519PrivateKeyManager,
        Ed25519PublicKeyManager,
        EcdsaPrivateKeyManager,
        EcdsaPublicKeyManager,
        RsaSsaPkcs1PrivateKeyManager,
        RsaSsaPkcs1PublicKeyManager,
        RsaSsaPssPrivateKeyManager,
        RsaSsaPssPublicKeyManager,
        EciesAeadHkdfPrivateKeyManager,
        EciesAeadHkdfPublicKeyManager,
        AesGcmHkdfStreamingKeyManager,
    ):
        registry.register(manager_type())
    return registry.freeze()


REGISTRY = _build_registry()

__all__ = [
    "REGISTRY",
    "KeyManager",
    "KeyManagerRegistry",
    "PrivateKeyManager",
    "PublicKeyManager",
]
