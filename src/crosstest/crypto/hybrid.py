"""ECIES hybrid encryption with an HKDF-derived AEAD data encapsulation.

The ciphertext is ``kem_bytes || dem_ciphertext`` where ``kem_bytes`` is the
encoded ephemeral public key. The DEM key is
``HKDF(salt, kem_bytes || shared_secret, info=context_info)``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from tink.proto import aes_ctr_hmac_aead_pb2, aes_gcm_pb2, ecies_aead_hkdf_pb2, tink_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .aead import AesCtrHmacAead, NonceAead, aes_ctr_hmac_key_format
from .params import (
    EcPointFormat,
    EllipticCurveType,
    bytes_to_int,
    decode_point,
    digest_size,
    encode_point,
    encoded_point_size,
    hash_algorithm,
    int_to_bytes,
    nist_curve,
    require_version,
    type_url as key_type_url,
)
from .registry import PrivateKeyManager, PublicKeyManager

X25519_KEY_SIZE = 32

_AES_GCM_URL = key_type_url("AesGcmKey")
_AES_CTR_HMAC_URL = key_type_url("AesCtrHmacAeadKey")


@dataclass(frozen=True, slots=True)
class Dem:
    """Data encapsulation: how many key bytes to derive and how to use them."""

    key_size: int
    build: Callable[[bytes], object]


def _parse_dem(template: tink_pb2.KeyTemplate) -> Dem:
    if template.type_url == _AES_GCM_URL:
        key_size = parse(aes_gcm_pb2.AesGcmKeyFormat, template.value).key_size
        if key_size not in (16, 32):
            raise KeysetError(f"invalid AES-GCM DEM key size {key_size}")
        return Dem(key_size, lambda key: NonceAead(AESGCM(key)))
    if template.type_url == _AES_CTR_HMAC_URL:
        key_format = parse(aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKeyFormat, template.value)
        aes_size, iv_size, hmac_params, hmac_size = aes_ctr_hmac_key_format(key_format)
        return Dem(
            aes_size + hmac_size,
            lambda key: AesCtrHmacAead(key[:aes_size], iv_size, key[aes_size:], hmac_params),
        )
    raise KeysetError(f"unsupported DEM key type {template.type_url!r}")


@dataclass(frozen=True, slots=True)
class EciesParams:
    curve: int
    hash_type: int
    salt: bytes
    point_format: int
    dem: Dem

    @classmethod
    def from_proto(cls, params: ecies_aead_hkdf_pb2.EciesAeadHkdfParams) -> "EciesParams":
        if not params.HasField("kem_params") or not params.HasField("dem_params"):
            raise KeysetError("incomplete ECIES parameters")
        kem = params.kem_params
        curve, hash_type = kem.curve_type, kem.hkdf_hash_type
        digest_size(hash_type)
        point_format = params.ec_point_format
        if curve == EllipticCurveType.CURVE25519:
            if point_format != EcPointFormat.COMPRESSED:
                raise KeysetError("X25519 requires the compressed point format")
        else:
            nist_curve(curve)
            if point_format not in (
                EcPointFormat.UNCOMPRESSED,
                EcPointFormat.COMPRESSED,
                EcPointFormat.DO_NOT_USE_CRUNCHY_UNCOMPRESSED,
            ):
                raise KeysetError(f"unsupported point format {point_format}")
        if not params.dem_params.HasField("aead_dem"):
            raise KeysetError("missing DEM key template")
        return cls(curve, hash_type, kem.hkdf_salt, point_format, _parse_dem(params.dem_params.aead_dem))

    def derive(self, kem_bytes: bytes, shared: bytes, context_info: bytes) -> object:
        key = HKDF(
            algorithm=hash_algorithm(self.hash_type),
            length=self.dem.key_size,
            salt=self.salt or None,
            info=context_info,
        ).derive(kem_bytes + shared)
        return self.dem.build(key)


def _raw_x25519(key: x25519.X25519PublicKey) -> bytes:
    return key.public_bytes(encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw)


class EciesEncrypt:
    def __init__(self, params: EciesParams, recipient: ec.EllipticCurvePublicKey | x25519.X25519PublicKey) -> None:
        self._params = params
        self._recipient = recipient

    def encrypt(self, plaintext: bytes, context_info: bytes) -> bytes:
        if isinstance(self._recipient, x25519.X25519PublicKey):
            ephemeral = x25519.X25519PrivateKey.generate()
            shared = ephemeral.exchange(self._recipient)
            kem_bytes = _raw_x25519(ephemeral.public_key())
        else:
            ephemeral_ec = ec.generate_private_key(self._recipient.curve)
            shared = ephemeral_ec.exchange(ec.ECDH(), self._recipient)
            kem_bytes = encode_point(ephemeral_ec.public_key(), self._params.point_format)
        dem = self._params.derive(kem_bytes, shared, context_info)
        return kem_bytes + dem.encrypt(plaintext, b"")  # type: ignore[attr-defined]


class EciesDecrypt:
    def __init__(self, params: EciesParams, key: ec.EllipticCurvePrivateKey | x25519.X25519PrivateKey) -> None:
        self._params = params
        self._key = key

    def decrypt(self, ciphertext: bytes, context_info: bytes) -> bytes:
        if isinstance(self._key, x25519.X25519PrivateKey):
            header = X25519_KEY_SIZE
        else:
            header = encoded_point_size(self._key.curve, self._params.point_format)
        if len(ciphertext) < header:
            raise CryptoError("ciphertext too short")
        kem_bytes, payload = ciphertext[:header], ciphertext[header:]
        if isinstance(self._key, x25519.X25519PrivateKey):
            try:
                shared = self._key.exchange(x25519.X25519PublicKey.from_public_bytes(kem_bytes))
            except ValueError as exc:
                raise CryptoError("invalid ephemeral public key") from exc
        else:
            ephemeral = decode_point(self._key.curve, self._params.point_format, kem_bytes)
            shared = self._key.exchange(ec.ECDH(), ephemeral)
        dem = self._params.derive(kem_bytes, shared, context_info)
        return dem.decrypt(payload, b"")  # type: ignore[attr-defined]


def _public_key(
    key: ecies_aead_hkdf_pb2.EciesAeadHkdfPublicKey,
) -> Tuple[EciesParams, ec.EllipticCurvePublicKey | x25519.X25519PublicKey]:
    require_version(key.version)
    if not key.HasField("params"):
        raise KeysetError("missing ECIES parameters")
    params = EciesParams.from_proto(key.params)
    try:
        if params.curve == EllipticCurveType.CURVE25519:
            return params, x25519.X25519PublicKey.from_public_bytes(key.x)
        curve = nist_curve(params.curve)
        numbers = ec.EllipticCurvePublicNumbers(bytes_to_int(key.x), bytes_to_int(key.y), curve)
        return params, numbers.public_key()
    except ValueError as exc:
        raise KeysetError("invalid ECIES public key") from exc


class EciesAeadHkdfPrivateKeyManager(PrivateKeyManager):
    public_type_url = key_type_url("EciesAeadHkdfPublicKey")
    type_url = key_type_url("EciesAeadHkdfPrivateKey")
    family = Family.HYBRID_DECRYPT

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(ecies_aead_hkdf_pb2.EciesAeadHkdfKeyFormat, key_format)
        if not message.HasField("params"):
            raise KeysetError("missing ECIES parameters")
        params = EciesParams.from_proto(message.params)
        if params.curve == EllipticCurveType.CURVE25519:
            private_key = x25519.X25519PrivateKey.generate()
            secret = private_key.private_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PrivateFormat.Raw,
                encryption_algorithm=serialization.NoEncryption(),
            )
            x, y = _raw_x25519(private_key.public_key()), b""
        else:
            ec_key = ec.generate_private_key(nist_curve(params.curve))
            numbers = ec_key.public_key().public_numbers()
            secret = int_to_bytes(ec_key.private_numbers().private_value)
            x, y = int_to_bytes(numbers.x), int_to_bytes(numbers.y)
        key = ecies_aead_hkdf_pb2.EciesAeadHkdfPrivateKey(
            public_key=ecies_aead_hkdf_pb2.EciesAeadHkdfPublicKey(params=message.params, x=x, y=y),
            key_value=secret,
        )
        return key.SerializeToString()

    def _decode(self, key_value: bytes):
        key = parse(ecies_aead_hkdf_pb2.EciesAeadHkdfPrivateKey, key_value)
        require_version(key.version)
        if not key.HasField("public_key"):
            raise KeysetError("missing ECIES public key")
        params, public_key = _public_key(key.public_key)
        try:
            if params.curve == EllipticCurveType.CURVE25519:
                private_key = x25519.X25519PrivateKey.from_private_bytes(key.key_value)
                matches = _raw_x25519(private_key.public_key()) == _raw_x25519(public_key)
            else:
                private_key = ec.derive_private_key(bytes_to_int(key.key_value), nist_curve(params.curve))
                matches = private_key.public_key().public_numbers() == public_key.public_numbers()
        except ValueError as exc:
            raise KeysetError("invalid ECIES private key") from exc
        if not matches:
            raise KeysetError("ECIES private key does not match its public key")
        return params, private_key, key.public_key.SerializeToString()

    def primitive(self, key_value: bytes) -> EciesDecrypt:
        params, private_key, _public = self._decode(key_value)
        return EciesDecrypt(params, private_key)

    def public_key_value(self, private_value: bytes) -> bytes:
        return self._decode(private_value)[2]


class EciesAeadHkdfPublicKeyManager(PublicKeyManager):
    type_url = key_type_url("EciesAeadHkdfPublicKey")
    family = Family.HYBRID_ENCRYPT

    def primitive(self, key_value: bytes) -> EciesEncrypt:
        return EciesEncrypt(*_public_key(parse(ecies_aead_hkdf_pb2.EciesAeadHkdfPublicKey, key_value)))


__all__ = [
    "EciesParams",
    "EciesEncrypt",
    "EciesDecrypt",
    "EciesAeadHkdfPrivateKeyManager",
    "EciesAeadHkdfPublicKeyManager",
]
