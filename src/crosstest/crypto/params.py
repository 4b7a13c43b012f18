"""Shared parameter enums and their mapping onto ``cryptography`` objects."""
from __future__ import annotations

from enum import IntEnum
from typing import Dict, Type

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from ..exceptions import CryptoError, KeysetError

TYPE_URL_PREFIX = "type.googleapis.com/google.crypto.tink."


class HashType(IntEnum):
    UNKNOWN_HASH = 0
    SHA1 = 1
    SHA384 = 2
    SHA256 = 3
    SHA512 = 4
    SHA224 = 5


class EllipticCurveType(IntEnum):
    UNKNOWN_CURVE = 0
    NIST_P256 = 2
    NIST_P384 = 3
    NIST_P521 = 4
    CURVE25519 = 5


class EcPointFormat(IntEnum):
    UNKNOWN_FORMAT = 0
    UNCOMPRESSED = 1
    COMPRESSED = 2
    DO_NOT_USE_CRUNCHY_UNCOMPRESSED = 3


class EcdsaSignatureEncoding(IntEnum):
    UNKNOWN_ENCODING = 0
    IEEE_P1363 = 1
    DER = 2


_HASHES: Dict[int, Type[hashes.HashAlgorithm]] = {
    HashType.SHA1: hashes.SHA1,
    HashType.SHA224: hashes.SHA224,
    HashType.SHA256: hashes.SHA256,
    HashType.SHA384: hashes.SHA384,
    HashType.SHA512: hashes.SHA512,
}

_CURVES: Dict[int, Type[ec.EllipticCurve]] = {
    EllipticCurveType.NIST_P256: ec.SECP256R1,
    EllipticCurveType.NIST_P384: ec.SECP384R1,
    EllipticCurveType.NIST_P521: ec.SECP521R1,
}


def type_url(name: str) -> str:
    return TYPE_URL_PREFIX + name


def hash_algorithm(hash_type: int) -> hashes.HashAlgorithm:
    try:
        return _HASHES[hash_type]()
    except KeyError:
        raise KeysetError(f"unsupported hash type {hash_type}") from None


def digest_size(hash_type: int) -> int:
    return hash_algorithm(hash_type).digest_size


def nist_curve(curve_type: int) -> ec.EllipticCurve:
    try:
        return _CURVES[curve_type]()
    except KeyError:
        raise KeysetError(f"unsupported curve {curve_type}") from None


def field_size(curve: ec.EllipticCurve) -> int:
    return (curve.key_size + 7) // 8


def encode_point(public_key: ec.EllipticCurvePublicKey, point_format: int) -> bytes:
    """Serialize an EC point the way the hybrid KEM expects it on the wire."""

    numbers = public_key.public_numbers()
    size = field_size(public_key.curve)
    x = numbers.x.to_bytes(size, "big")
    y = numbers.y.to_bytes(size, "big")
    if point_format == EcPointFormat.UNCOMPRESSED:
        return b"\x04" + x + y
    if point_format == EcPointFormat.DO_NOT_USE_CRUNCHY_UNCOMPRESSED:
        return x + y
    if point_format == EcPointFormat.COMPRESSED:
        return bytes([2 + (numbers.y & 1)]) + x
    raise KeysetError(f"unsupported point format {point_format}")


def decode_point(curve: ec.EllipticCurve, point_format: int, data: bytes) -> ec.EllipticCurvePublicKey:
    size = field_size(curve)
    if point_format == EcPointFormat.DO_NOT_USE_CRUNCHY_UNCOMPRESSED:
        if len(data) != 2 * size:
            raise CryptoError("invalid point length")
        data = b"\x04" + data
    elif point_format == EcPointFormat.UNCOMPRESSED:
        if len(data) != 2 * size + 1 or data[0] != 0x04:
            raise CryptoError("invalid uncompressed point")
    elif point_format == EcPointFormat.COMPRESSED:
        if len(data) != size + 1 or data[0] not in (0x02, 0x03):
            raise CryptoError("invalid compressed point")
    else:
        raise KeysetError(f"unsupported point format {point_format}")
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(curve, data)
    except ValueError as exc:
        raise CryptoError("point is not on the curve") from exc


def encoded_point_size(curve: ec.EllipticCurve, point_format: int) -> int:
    size = field_size(curve)
    if point_format == EcPointFormat.UNCOMPRESSED:
        return 2 * size + 1
    if point_format == EcPointFormat.DO_NOT_USE_CRUNCHY_UNCOMPRESSED:
        return 2 * size
    if point_format == EcPointFormat.COMPRESSED:
        return size + 1
    raise KeysetError(f"unsupported point format {point_format}")


def int_to_bytes(value: int) -> bytes:
    """Big-endian magnitude with a leading zero byte when the top bit is set."""
    length = value.bit_length() // 8 + 1
    return value.to_bytes(length, "big")


def bytes_to_int(data: bytes) -> int:
    return int.from_bytes(data, "big")


def require_version(version: int, maximum: int = 0) -> None:
    if version > maximum:
        raise KeysetError(f"key version {version} is not supported")


__all__ = [
    "TYPE_URL_PREFIX",
    "HashType",
    "EllipticCurveType",
    "EcPointFormat",
    "EcdsaSignatureEncoding",
    "type_url",
    "hash_algorithm",
    "digest_size",
    "nist_curve",
    "field_size",
    "encode_point",
    "decode_point",
    "encoded_point_size",
    "int_to_bytes",
    "bytes_to_int",
    "require_version",
]
