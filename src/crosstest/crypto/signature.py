"""Digital signatures: Ed25519, ECDSA, RSA-SSA-PKCS1 and RSA-SSA-PSS."""
from __future__ import annotations

from typing import Any, Final, Tuple, Type

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives import serialization
from tink.proto import ecdsa_pb2, ed25519_pb2, rsa_ssa_pkcs1_pb2, rsa_ssa_pss_pb2

from ..exceptions import CryptoError, KeysetError
from ..families import Family
from ..keyset.proto import parse
from .params import (
    EcdsaSignatureEncoding,
    EllipticCurveType,
    HashType,
    bytes_to_int,
    field_size,
    hash_algorithm,
    int_to_bytes,
    nist_curve,
    require_version,
    type_url as key_type_url,
)
from .registry import PrivateKeyManager, PublicKeyManager

ED25519_KEY_SIZE: Final[int] = 32
MIN_RSA_MODULUS_BITS: Final[int] = 2048
RSA_F4: Final[int] = 65537

_ECDSA_HASHES = {
    EllipticCurveType.NIST_P256: frozenset({HashType.SHA256}),
    EllipticCurveType.NIST_P384: frozenset({HashType.SHA384, HashType.SHA512}),
    EllipticCurveType.NIST_P521: frozenset({HashType.SHA512}),
}
_RSA_HASHES = frozenset({HashType.SHA256, HashType.SHA384, HashType.SHA512})


def _verify_or_fail(verify, *args) -> None:
    try:
        verify(*args)
    except InvalidSignature as exc:
        raise CryptoError("invalid signature") from exc


# -- Ed25519 -------------------------------------------------------------


class Ed25519Signer:
    def __init__(self, seed: bytes) -> None:
        self._key = ed25519.Ed25519PrivateKey.from_private_bytes(seed)

    def sign(self, data: bytes) -> bytes:
        return self._key.sign(data)


class Ed25519Verifier:
    def __init__(self, public_key: bytes) -> None:
        self._key = ed25519.Ed25519PublicKey.from_public_bytes(public_key)

    def verify(self, signature: bytes, data: bytes) -> None:
        _verify_or_fail(self._key.verify, signature, data)


def _ed25519_public(key: ed25519_pb2.Ed25519PublicKey) -> bytes:
    require_version(key.version)
    if len(key.key_value) != ED25519_KEY_SIZE:
        raise KeysetError("Ed25519 public keys must be 32 bytes")
    return key.key_value


class Ed25519PrivateKeyManager(PrivateKeyManager):
    public_type_url = key_type_url("Ed25519PublicKey")
    type_url = key_type_url("Ed25519PrivateKey")
    family = Family.SIGN

    def new_key_value(self, key_format: bytes) -> bytes:
        require_version(parse(ed25519_pb2.Ed25519KeyFormat, key_format).version)
        private_key = ed25519.Ed25519PrivateKey.generate()
        seed = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        key = ed25519_pb2.Ed25519PrivateKey(
            key_value=seed, public_key=ed25519_pb2.Ed25519PublicKey(key_value=public)
        )
        return key.SerializeToString()

    def _decode(self, key_value: bytes) -> ed25519_pb2.Ed25519PrivateKey:
        key = parse(ed25519_pb2.Ed25519PrivateKey, key_value)
        require_version(key.version)
        if len(key.key_value) != ED25519_KEY_SIZE:
            raise KeysetError("Ed25519 private keys must be 32 bytes")
        if not key.HasField("public_key"):
            raise KeysetError("missing Ed25519 public key")
        return key

    def primitive(self, key_value: bytes) -> Ed25519Signer:
        return Ed25519Signer(self._decode(key_value).key_value)

    def public_key_value(self, private_value: bytes) -> bytes:
        public = self._decode(private_value).public_key
        _ed25519_public(public)
        return public.SerializeToString()


class Ed25519PublicKeyManager(PublicKeyManager):
    type_url = key_type_url("Ed25519PublicKey")
    family = Family.VERIFY

    def primitive(self, key_value: bytes) -> Ed25519Verifier:
        return Ed25519Verifier(_ed25519_public(parse(ed25519_pb2.Ed25519PublicKey, key_value)))


# -- ECDSA ---------------------------------------------------------------


def _ecdsa_params(params: ecdsa_pb2.EcdsaParams) -> Tuple[int, int, int]:
    hash_type, curve, encoding = params.hash_type, params.curve, params.encoding
    if hash_type not in _ECDSA_HASHES.get(curve, ()):
        raise KeysetError(f"ECDSA does not support hash {hash_type} on curve {curve}")
    if encoding not in (EcdsaSignatureEncoding.DER, EcdsaSignatureEncoding.IEEE_P1363):
        raise KeysetError(f"unsupported ECDSA signature encoding {encoding}")
    return hash_type, curve, encoding


class EcdsaSigner:
    def __init__(self, key: ec.EllipticCurvePrivateKey, hash_type: int, encoding: int) -> None:
        self._key = key
        self._hash_type = hash_type
        self._encoding = encoding

    def sign(self, data: bytes) -> bytes:
        der = self._key.sign(data, ec.ECDSA(hash_algorithm(self._hash_type)))
        if self._encoding == EcdsaSignatureEncoding.DER:
            return der
        r, s = decode_dss_signature(der)
        size = field_size(self._key.curve)
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")


class EcdsaVerifier:
    def __init__(self, key: ec.EllipticCurvePublicKey, hash_type: int, encoding: int) -> None:
        self._key = key
        self._hash_type = hash_type
        self._encoding = encoding

    def verify(self, signature: bytes, data: bytes) -> None:
        if self._encoding == EcdsaSignatureEncoding.IEEE_P1363:
            size = field_size(self._key.curve)
            if len(signature) != 2 * size:
                raise CryptoError("invalid signature length")
            r = bytes_to_int(signature[:size])
            s = bytes_to_int(signature[size:])
            signature = encode_dss_signature(r, s)
        _verify_or_fail(self._key.verify, signature, data, ec.ECDSA(hash_algorithm(self._hash_type)))


def _ecdsa_public(key: ecdsa_pb2.EcdsaPublicKey) -> Tuple[ec.EllipticCurvePublicKey, int, int]:
    require_version(key.version)
    if not key.HasField("params"):
        raise KeysetError("missing ECDSA parameters")
    hash_type, curve_type, encoding = _ecdsa_params(key.params)
    curve = nist_curve(curve_type)
    try:
        numbers = ec.EllipticCurvePublicNumbers(bytes_to_int(key.x), bytes_to_int(key.y), curve)
        public_key = numbers.public_key()
    except ValueError as exc:
        raise KeysetError("invalid ECDSA public key") from exc
    return public_key, hash_type, encoding


class EcdsaPrivateKeyManager(PrivateKeyManager):
    public_type_url = key_type_url("EcdsaPublicKey")
    type_url = key_type_url("EcdsaPrivateKey")
    family = Family.SIGN

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(ecdsa_pb2.EcdsaKeyFormat, key_format)
        if not message.HasField("params"):
            raise KeysetError("missing ECDSA parameters")
        _hash_type, curve_type, _encoding = _ecdsa_params(message.params)
        private_key = ec.generate_private_key(nist_curve(curve_type))
        numbers = private_key.public_key().public_numbers()
        key = ecdsa_pb2.EcdsaPrivateKey(
            public_key=ecdsa_pb2.EcdsaPublicKey(
                params=message.params, x=int_to_bytes(numbers.x), y=int_to_bytes(numbers.y)
            ),
            key_value=int_to_bytes(private_key.private_numbers().private_value),
        )
        return key.SerializeToString()

    def _decode(self, key_value: bytes) -> Tuple[ec.EllipticCurvePrivateKey, int, int, bytes]:
        key = parse(ecdsa_pb2.EcdsaPrivateKey, key_value)
        require_version(key.version)
        if not key.HasField("public_key"):
            raise KeysetError("missing ECDSA public key")
        public_key, hash_type, encoding = _ecdsa_public(key.public_key)
        try:
            private_key = ec.derive_private_key(bytes_to_int(key.key_value), public_key.curve)
        except ValueError as exc:
            raise KeysetError("invalid ECDSA private key") from exc
        if private_key.public_key().public_numbers() != public_key.public_numbers():
            raise KeysetError("ECDSA private key does not match its public key")
        return private_key, hash_type, encoding, key.public_key.SerializeToString()

    def primitive(self, key_value: bytes) -> EcdsaSigner:
        private_key, hash_type, encoding, _public = self._decode(key_value)
        return EcdsaSigner(private_key, hash_type, encoding)

    def public_key_value(self, private_value: bytes) -> bytes:
        return self._decode(private_value)[3]


class EcdsaPublicKeyManager(PublicKeyManager):
    type_url = key_type_url("EcdsaPublicKey")
    family = Family.VERIFY

    def primitive(self, key_value: bytes) -> EcdsaVerifier:
        return EcdsaVerifier(*_ecdsa_public(parse(ecdsa_pb2.EcdsaPublicKey, key_value)))


# -- RSA -----------------------------------------------------------------


class RsaSigner:
    def __init__(self, key: rsa.RSAPrivateKey, pad: padding.AsymmetricPadding, hash_type: int) -> None:
        self._key = key
        self._padding = pad
        self._hash_type = hash_type

    def sign(self, data: bytes) -> bytes:
        try:
            return self._key.sign(data, self._padding, hash_algorithm(self._hash_type))
        except ValueError as exc:
            raise CryptoError(f"RSA signing failed: {exc}") from exc


class RsaVerifier:
    def __init__(self, key: rsa.RSAPublicKey, pad: padding.AsymmetricPadding, hash_type: int) -> None:
        self._key = key
        self._padding = pad
        self._hash_type = hash_type

    def verify(self, signature: bytes, data: bytes) -> None:
        _verify_or_fail(self._key.verify, signature, data, self._padding, hash_algorithm(self._hash_type))


def _check_rsa_public(numbers: rsa.RSAPublicNumbers) -> None:
    if numbers.n.bit_length() < MIN_RSA_MODULUS_BITS:
        raise KeysetError(f"RSA modulus below {MIN_RSA_MODULUS_BITS} bits")
    if numbers.e != RSA_F4:
        raise KeysetError("RSA public exponent must be 65537")


class _RsaScheme:
    """Key handling shared by the PKCS#1 v1.5 and PSS key types.

    Both schemes use the same key layout and differ only in their parameter
    message, so subclasses name their generated message classes and parse
    their own parameters.
    """

    format_type: Type[Any]
    public_type: Type[Any]
    private_type: Type[Any]

    def parse_params(self, params: Any) -> Tuple[padding.AsymmetricPadding, int]:
        raise NotImplementedError  # pragma: no cover - interface

    def public(self, key: Any) -> Tuple[rsa.RSAPublicKey, padding.AsymmetricPadding, int]:
        require_version(key.version)
        pad, hash_type = self.parse_params(key.params)
        numbers = rsa.RSAPublicNumbers(bytes_to_int(key.e), bytes_to_int(key.n))
        _check_rsa_public(numbers)
        try:
            return numbers.public_key(), pad, hash_type
        except ValueError as exc:
            raise KeysetError("invalid RSA public key") from exc

    def new_key_value(self, key_format: bytes) -> bytes:
        message = parse(self.format_type, key_format)
        self.parse_params(message.params)
        if message.modulus_size_in_bits < MIN_RSA_MODULUS_BITS:
            raise KeysetError(f"RSA modulus below {MIN_RSA_MODULUS_BITS} bits")
        if bytes_to_int(message.public_exponent) != RSA_F4:
            raise KeysetError("RSA public exponent must be 65537")
        private_key = rsa.generate_private_key(public_exponent=RSA_F4, key_size=message.modulus_size_in_bits)
        numbers = private_key.private_numbers()
        public = self.public_type(
            params=message.params,
            n=int_to_bytes(numbers.public_numbers.n),
            e=int_to_bytes(numbers.public_numbers.e),
        )
        key = self.private_type(
            public_key=public,
            d=int_to_bytes(numbers.d),
            p=int_to_bytes(numbers.p),
            q=int_to_bytes(numbers.q),
            dp=int_to_bytes(numbers.dmp1),
            dq=int_to_bytes(numbers.dmq1),
            crt=int_to_bytes(numbers.iqmp),
        )
        return key.SerializeToString()

    def private(self, data: bytes) -> Tuple[rsa.RSAPrivateKey, padding.AsymmetricPadding, int, bytes]:
        key = parse(self.private_type, data)
        require_version(key.version)
        if not key.HasField("public_key"):
            raise KeysetError("missing RSA public key")
        public_key, pad, hash_type = self.public(key.public_key)
        try:
            private_key = rsa.RSAPrivateNumbers(
                p=bytes_to_int(key.p),
                q=bytes_to_int(key.q),
                d=bytes_to_int(key.d),
                dmp1=bytes_to_int(key.dp),
                dmq1=bytes_to_int(key.dq),
                iqmp=bytes_to_int(key.crt),
                public_numbers=public_key.public_numbers(),
            ).private_key()
        except ValueError as exc:
            raise KeysetError("invalid RSA private key") from exc
        return private_key, pad, hash_type, key.public_key.SerializeToString()


class _Pkcs1(_RsaScheme):
    format_type = rsa_ssa_pkcs1_pb2.RsaSsaPkcs1KeyFormat
    public_type = rsa_ssa_pkcs1_pb2.RsaSsaPkcs1PublicKey
    private_type = rsa_ssa_pkcs1_pb2.RsaSsaPkcs1PrivateKey

    def parse_params(
        self, params: rsa_ssa_pkcs1_pb2.RsaSsaPkcs1Params
    ) -> Tuple[padding.AsymmetricPadding, int]:
        if params.hash_type not in _RSA_HASHES:
            raise KeysetError(f"RSA PKCS#1 does not support hash type {params.hash_type}")
        return padding.PKCS1v15(), params.hash_type


class _Pss(_RsaScheme):
    format_type = rsa_ssa_pss_pb2.RsaSsaPssKeyFormat
    public_type = rsa_ssa_pss_pb2.RsaSsaPssPublicKey
    private_type = rsa_ssa_pss_pb2.RsaSsaPssPrivateKey

    def parse_params(
        self, params: rsa_ssa_pss_pb2.RsaSsaPssParams
    ) -> Tuple[padding.AsymmetricPadding, int]:
        sig_hash, mgf1_hash, salt_length = params.sig_hash, params.mgf1_hash, params.salt_length
        if sig_hash not in _RSA_HASHES:
            raise KeysetError(f"RSA PSS does not support hash type {sig_hash}")
        if sig_hash != mgf1_hash:
            raise KeysetError("RSA PSS signature and MGF1 hashes must match")
        if salt_length < 0:
            raise KeysetError("RSA PSS salt length must not be negative")
        return padding.PSS(mgf=padding.MGF1(hash_algorithm(mgf1_hash)), salt_length=salt_length), sig_hash


class _RsaPrivateKeyManager(PrivateKeyManager):
    family = Family.SIGN
    scheme: _RsaScheme

    def new_key_value(self, key_format: bytes) -> bytes:
        return self.scheme.new_key_value(key_format)

    def primitive(self, key_value: bytes) -> RsaSigner:
        key, pad, hash_type, _public = self.scheme.private(key_value)
        return RsaSigner(key, pad, hash_type)

    def public_key_value(self, private_value: bytes) -> bytes:
        return self.scheme.private(private_value)[3]


class _RsaPublicKeyManager(PublicKeyManager):
    family = Family.VERIFY
    scheme: _RsaScheme

    def primitive(self, key_value: bytes) -> RsaVerifier:
        return RsaVerifier(*self.scheme.public(parse(self.scheme.public_type, key_value)))


class RsaSsaPkcs1PrivateKeyManager(_RsaPrivateKeyManager):
    public_type_url = key_type_url("RsaSsaPkcs1PublicKey")
    type_url = key_type_url("RsaSsaPkcs1PrivateKey")
    scheme = _Pkcs1()


class RsaSsaPkcs1PublicKeyManager(_RsaPublicKeyManager):
    type_url = key_type_url("RsaSsaPkcs1PublicKey")
    scheme = _Pkcs1()


class RsaSsaPssPrivateKeyManager(_RsaPrivateKeyManager):
    public_type_url = key_type_url("RsaSsaPssPublicKey")
    type_url = key_type_url("RsaSsaPssPrivateKey")
    scheme = _Pss()


class RsaSsaPssPublicKeyManager(_RsaPublicKeyManager):
    type_url = key_type_url("RsaSsaPssPublicKey")
    scheme = _Pss()


__all__ = [
    "Ed25519Signer",
    "Ed25519Verifier",
    "EcdsaSigner",
    "EcdsaVerifier",
    "RsaSigner",
    "RsaVerifier",
    "Ed25519PrivateKeyManager",
    "Ed25519PublicKeyManager",
    "EcdsaPrivateKeyManager",
    "EcdsaPublicKeyManager",
    "RsaSsaPkcs1PrivateKeyManager",
    "RsaSsaPkcs1PublicKeyManager",
    "RsaSsaPssPrivateKeyManager",
    "RsaSsaPssPublicKeyManager",
]
