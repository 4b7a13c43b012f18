"""Named key templates."""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping

from google.protobuf import message as pb_message
from tink.proto import (
    aes_cmac_pb2,
    aes_cmac_prf_pb2,
    aes_ctr_hmac_aead_pb2,
    aes_ctr_pb2,
    aes_gcm_hkdf_streaming_pb2,
    aes_gcm_pb2,
    aes_gcm_siv_pb2,
    aes_siv_pb2,
    ecdsa_pb2,
    ecies_aead_hkdf_pb2,
    hkdf_prf_pb2,
    hmac_pb2,
    hmac_prf_pb2,
    rsa_ssa_pkcs1_pb2,
    rsa_ssa_pss_pb2,
)

from ..crypto.params import (
    EcdsaSignatureEncoding,
    EcPointFormat,
    EllipticCurveType,
    HashType,
    int_to_bytes,
    type_url,
)
from ..crypto.signature import RSA_F4
from ..exceptions import KeysetError
from .binary import encode_template, template_to_proto
from .models import KeyTemplate, OutputPrefixType

TINK = OutputPrefixType.TINK
RAW = OutputPrefixType.RAW


def _template(name: str, key_format: pb_message.Message | None, prefix: int = TINK) -> KeyTemplate:
    value = key_format.SerializeToString() if key_format is not None else b""
    return KeyTemplate(type_url(name), value, prefix)


def _aes_gcm(key_size: int, prefix: int = TINK) -> KeyTemplate:
    return _template("AesGcmKey", aes_gcm_pb2.AesGcmKeyFormat(key_size=key_size), prefix)


def _aes_gcm_siv(key_size: int) -> KeyTemplate:
    return _template("AesGcmSivKey", aes_gcm_siv_pb2.AesGcmSivKeyFormat(key_size=key_size))


def _aes_ctr_hmac(aes_key_size: int, tag_size: int) -> KeyTemplate:
    key_format = aes_ctr_hmac_aead_pb2.AesCtrHmacAeadKeyFormat(
        aes_ctr_key_format=aes_ctr_pb2.AesCtrKeyFormat(
            params=aes_ctr_pb2.AesCtrParams(iv_size=16), key_size=aes_key_size
        ),
        hmac_key_format=hmac_pb2.HmacKeyFormat(
            params=hmac_pb2.HmacParams(hash=HashType.SHA256, tag_size=tag_size), key_size=32
        ),
    )
    return _template("AesCtrHmacAeadKey", key_format)


def _hmac(key_size: int, tag_size: int, hash_type: int) -> KeyTemplate:
    key_format = hmac_pb2.HmacKeyFormat(
        params=hmac_pb2.HmacParams(hash=hash_type, tag_size=tag_size), key_size=key_size
    )
    return _template("HmacKey", key_format)


def _hmac_prf(hash_type: int, key_size: int) -> KeyTemplate:
    key_format = hmac_prf_pb2.HmacPrfKeyFormat(
        params=hmac_prf_pb2.HmacPrfParams(hash=hash_type), key_size=key_size
    )
    return _template("HmacPrfKey", key_format, RAW)


def _ecdsa(curve: int, hash_type: int, encoding: int, prefix: int = TINK) -> KeyTemplate:
    key_format = ecdsa_pb2.EcdsaKeyFormat(
        params=ecdsa_pb2.EcdsaParams(hash_type=hash_type, curve=curve, encoding=encoding)
    )
    return _template("EcdsaPrivateKey", key_format, prefix)


def _rsa_pkcs1(modulus_bits: int, hash_type: int) -> KeyTemplate:
    key_format = rsa_ssa_pkcs1_pb2.RsaSsaPkcs1KeyFormat(
        params=rsa_ssa_pkcs1_pb2.RsaSsaPkcs1Params(hash_type=hash_type),
        modulus_size_in_bits=modulus_bits,
        public_exponent=int_to_bytes(RSA_F4),
    )
    return _template("RsaSsaPkcs1PrivateKey", key_format)


def _rsa_pss(modulus_bits: int, hash_type: int, salt_length: int) -> KeyTemplate:
    key_format = rsa_ssa_pss_pb2.RsaSsaPssKeyFormat(
        params=rsa_ssa_pss_pb2.RsaSsaPssParams(
            sig_hash=hash_type, mgf1_hash=hash_type, salt_length=salt_length
        ),
        modulus_size_in_bits=modulus_bits,
        public_exponent=int_to_bytes(RSA_F4),
    )
    return _template("RsaSsaPssPrivateKey", key_format)


def _ecies(curve: int, point_format: int, dem: KeyTemplate) -> KeyTemplate:
    key_format = ecies_aead_hkdf_pb2.EciesAeadHkdfKeyFormat(
        params=ecies_aead_hkdf_pb2.EciesAeadHkdfParams(
            kem_params=ecies_aead_hkdf_pb2.EciesHkdfKemParams(
                curve_type=curve, hkdf_hash_type=HashType.SHA256
            ),
            dem_params=ecies_aead_hkdf_pb2.EciesAeadDemParams(aead_dem=template_to_proto(dem)),
            ec_point_format=point_format,
        )
    )
    return _template("EciesAeadHkdfPrivateKey", key_format)


def _streaming(key_size: int, segment_size: int) -> KeyTemplate:
    key_format = aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingKeyFormat(
        params=aes_gcm_hkdf_streaming_pb2.AesGcmHkdfStreamingParams(
            ciphertext_segment_size=segment_size,
            derived_key_size=key_size,
            hkdf_hash_type=HashType.SHA256,
        ),
        key_size=key_size,
    )
    return _template("AesGcmHkdfStreamingKey", key_format, RAW)


def _build() -> Dict[str, KeyTemplate]:
    p256, p384, p521 = EllipticCurveType.NIST_P256, EllipticCurveType.NIST_P384, EllipticCurveType.NIST_P521
    der, p1363 = EcdsaSignatureEncoding.DER, EcdsaSignatureEncoding.IEEE_P1363
    return {
        "AES128_GCM": _aes_gcm(16),
        "AES256_GCM": _aes_gcm(32),
        "AES128_GCM_RAW": _aes_gcm(16, RAW),
        "AES256_GCM_RAW": _aes_gcm(32, RAW),
        "AES128_GCM_SIV": _aes_gcm_siv(16),
        "AES256_GCM_SIV": _aes_gcm_siv(32),
        "CHACHA20_POLY1305": _template("ChaCha20Poly1305Key", None),
        "CHACHA20_POLY1305_RAW": _template("ChaCha20Poly1305Key", None, RAW),
        "AES128_CTR_HMAC_SHA256": _aes_ctr_hmac(16, 16),
        "AES256_CTR_HMAC_SHA256": _aes_ctr_hmac(32, 32),
        "AES256_SIV": _template("AesSivKey", aes_siv_pb2.AesSivKeyFormat(key_size=64)),
        "HMAC_SHA256_128BITTAG": _hmac(32, 16, HashType.SHA256),
        "HMAC_SHA256_256BITTAG": _hmac(32, 32, HashType.SHA256),
        "HMAC_SHA512_256BITTAG": _hmac(64, 32, HashType.SHA512),
        "HMAC_SHA512_512BITTAG": _hmac(64, 64, HashType.SHA512),
        "AES_CMAC": _template(
            "AesCmacKey",
            aes_cmac_pb2.AesCmacKeyFormat(key_size=32, params=aes_cmac_pb2.AesCmacParams(tag_size=16)),
        ),
        "HMAC_SHA256_PRF": _hmac_prf(HashType.SHA256, 32),
        "HMAC_SHA512_PRF": _hmac_prf(HashType.SHA512, 64),
        "HKDF_SHA256": _template(
            "HkdfPrfKey",
            hkdf_prf_pb2.HkdfPrfKeyFormat(
                params=hkdf_prf_pb2.HkdfPrfParams(hash=HashType.SHA256), key_size=32
            ),
            RAW,
        ),
        "AES_CMAC_PRF": _template("AesCmacPrfKey", aes_cmac_prf_pb2.AesCmacPrfKeyFormat(key_size=32), RAW),
        "ED25519": _template("Ed25519PrivateKey", None),
        "ED25519_RAW": _template("Ed25519PrivateKey", None, RAW),
        "ECDSA_P256": _ecdsa(p256, HashType.SHA256, der),
        "ECDSA_P384": _ecdsa(p384, HashType.SHA512, der),
        "ECDSA_P521": _ecdsa(p521, HashType.SHA512, der),
        "ECDSA_P256_IEEE_P1363": _ecdsa(p256, HashType.SHA256, p1363),
        "ECDSA_P384_IEEE_P1363": _ecdsa(p384, HashType.SHA384, p1363),
        "ECDSA_P521_IEEE_P1363": _ecdsa(p521, HashType.SHA512, p1363),
        "ECDSA_P256_RAW": _ecdsa(p256, HashType.SHA256, p1363, RAW),
        "RSA_SSA_PKCS1_3072_SHA256_F4": _rsa_pkcs1(3072, HashType.SHA256),
        "RSA_SSA_PKCS1_4096_SHA512_F4": _rsa_pkcs1(4096, HashType.SHA512),
        "RSA_SSA_PSS_3072_SHA256_SHA256_32_F4": _rsa_pss(3072, HashType.SHA256, 32),
        "RSA_SSA_PSS_4096_SHA512_SHA512_64_F4": _rsa_pss(4096, HashType.SHA512, 64),
        "ECIES_P256_HKDF_HMAC_SHA256_AES128_GCM": _ecies(
            p256, EcPointFormat.UNCOMPRESSED, _aes_gcm(16)
        ),
        "ECIES_P256_COMPRESSED_HKDF_HMAC_SHA256_AES128_GCM": _ecies(
            p256, EcPointFormat.COMPRESSED, _aes_gcm(16)
        ),
        "ECIES_P256_HKDF_HMAC_SHA256_AES128_CTR_HMAC_SHA256": _ecies(
            p256, EcPointFormat.UNCOMPRESSED, _aes_ctr_hmac(16, 16)
        ),
        "ECIES_X25519_HKDF_HMAC_SHA256_AES128_GCM": _ecies(
            EllipticCurveType.CURVE25519, EcPointFormat.COMPRESSED, _aes_gcm(16)
        ),
        "AES128_GCM_HKDF_4KB": _streaming(16, 4096),
        "AES128_GCM_HKDF_1MB": _streaming(16, 1024 * 1024),
        "AES256_GCM_HKDF_4KB": _streaming(32, 4096),
        "AES256_GCM_HKDF_1MB": _streaming(32, 1024 * 1024),
    }


TEMPLATES: Mapping[str, KeyTemplate] = MappingProxyType(_build())


def template_names() -> List[str]:
    return sorted(TEMPLATES)


def get_template(name: str) -> KeyTemplate:
    try:
        return TEMPLATES[name.upper()]
    except KeyError:
        raise KeysetError(f"unknown key template {name!r}") from None


def serialized_template(name: str) -> bytes:
    return encode_template(get_template(name))


__all__ = ["TEMPLATES", "template_names", "get_template", "serialized_template"]
