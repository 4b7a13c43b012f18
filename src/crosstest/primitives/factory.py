"""Build family capabilities from keyset handles.

Producing operations use the primary key and prepend its output prefix.
Consuming operations try every enabled key whose prefix matches the input and
then every RAW key on the unmodified input.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Dict, Iterator, List, Optional, Tuple

from cryptography.exceptions import InvalidSignature, InvalidTag

from ..crypto import REGISTRY
from ..exceptions import CrossTestError, CryptoError, KeysetError, PrimitiveError
from ..families import PREFIXLESS, Family
from ..keyset.models import OutputPrefixType
from .prefix import PREFIX_SIZE, key_prefix, legacy_data

if TYPE_CHECKING:  # pragma: no cover
    from ..keyset.handle import KeysetHandle

_CANDIDATE_ERRORS = (CrossTestError, InvalidTag, InvalidSignature)
_NEEDS_PRIMARY = frozenset(
    {
        Family.AEAD,
        Family.DAEAD,
        Family.MAC,
        Family.PRF,
        Family.SIGN,
        Family.HYBRID_ENCRYPT,
        Family.STREAMING_AEAD,
    }
)


@dataclass(frozen=True, slots=True)
class Entry:
    key_id: int
    prefix_type: int
    prefix: bytes
    primitive: Any


class PrimitiveSet:
    """Enabled keys of one handle, instantiated for a single family."""

    def __init__(self, entries: List[Entry], primary: Optional[Entry]) -> None:
        self.entries = entries
        self.primary = primary
        self._by_prefix: Dict[bytes, List[Entry]] = {}
        for entry in entries:
            self._by_prefix.setdefault(entry.prefix, []).append(entry)

    def require_primary(self) -> Entry:
        if self.primary is None:
            raise PrimitiveError("keyset has no primary key")
        return self.primary

    def candidates(self, data: bytes) -> Iterator[Tuple[Entry, bytes]]:
        if len(data) >= PREFIX_SIZE:
            prefix = data[:PREFIX_SIZE]
            for entry in self._by_prefix.get(prefix, ()):
                if entry.prefix:
                    yield entry, data[PREFIX_SIZE:]
        for entry in self._by_prefix.get(b"", ()):
            yield entry, data

    def first_success(self, data: bytes, attempt: Callable[[Entry, bytes], Any], failure: str) -> Any:
        for entry, payload in self.candidates(data):
            try:
                return attempt(entry, payload)
            except _CANDIDATE_ERRORS:
                continue
        raise CryptoError(failure)


class WrappedAead:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def encrypt(self, plaintext: bytes, associated_data: bytes) -> bytes:
        primary = self._set.require_primary()
        return primary.prefix + primary.primitive.encrypt(plaintext, associated_data)

    def decrypt(self, ciphertext: bytes, associated_data: bytes) -> bytes:
        return self._set.first_success(
            ciphertext,
            lambda entry, payload: entry.primitive.decrypt(payload, associated_data),
            "decryption failed",
        )


class WrappedDeterministicAead:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def encrypt_deterministically(self, plaintext: bytes, associated_data: bytes) -> bytes:
        primary = self._set.require_primary()
        return primary.prefix + primary.primitive.encrypt_deterministically(plaintext, associated_data)

    def decrypt_deterministically(self, ciphertext: bytes, associated_data: bytes) -> bytes:
        return self._set.first_success(
            ciphertext,
            lambda entry, payload: entry.primitive.decrypt_deterministically(payload, associated_data),
            "decryption failed",
        )


class WrappedMac:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def compute_mac(self, data: bytes) -> bytes:
        primary = self._set.require_primary()
        return primary.prefix + primary.primitive.compute_mac(legacy_data(primary.prefix_type, data))

    def verify_mac(self, mac_value: bytes, data: bytes) -> None:
        self._set.first_success(
            mac_value,
            lambda entry, tag: entry.primitive.verify_mac(tag, legacy_data(entry.prefix_type, data)),
            "invalid MAC",
        )


class WrappedPrfSet:
    """PRFs by key id; ``compute`` defaults to the primary key."""

    def __init__(self, primitives: PrimitiveSet) -> None:
        self.primary_key_id = primitives.require_primary().key_id
        self.prfs = {entry.key_id: entry.primitive for entry in primitives.entries}

    def key_ids(self) -> List[int]:
        return sorted(self.prfs)

    def compute(self, input_data: bytes, output_length: int, key_id: Optional[int] = None) -> bytes:
        target = self.primary_key_id if key_id is None else key_id
        prf = self.prfs.get(target)
        if prf is None:
            raise PrimitiveError(f"no enabled PRF with key id {target}")
        return prf.compute(input_data, output_length)


class WrappedSign:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def sign(self, data: bytes) -> bytes:
        primary = self._set.require_primary()
        return primary.prefix + primary.primitive.sign(legacy_data(primary.prefix_type, data))


class WrappedVerify:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def verify(self, signature: bytes, data: bytes) -> None:
        self._set.first_success(
            signature,
            lambda entry, sig: entry.primitive.verify(sig, legacy_data(entry.prefix_type, data)),
            "invalid signature",
        )


class WrappedHybridEncrypt:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def encrypt(self, plaintext: bytes, context_info: bytes) -> bytes:
        primary = self._set.require_primary()
        return primary.prefix + primary.primitive.encrypt(plaintext, context_info)


class WrappedHybridDecrypt:
    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def decrypt(self, ciphertext: bytes, context_info: bytes) -> bytes:
        return self._set.first_success(
            ciphertext,
            lambda entry, payload: entry.primitive.decrypt(payload, context_info),
            "decryption failed",
        )


def _copy(source: BinaryIO, destination: BinaryIO, chunk_size: int) -> None:
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return
        destination.write(chunk)


class WrappedStreamingAead:
    """Streams through the primary key; decryption tries each key in turn."""

    def __init__(self, primitives: PrimitiveSet) -> None:
        self._set = primitives

    def new_encrypting_stream(self, destination: BinaryIO, associated_data: bytes):
        return self._set.require_primary().primitive.new_encrypting_stream(destination, associated_data)

    def encrypt_stream(
        self, source: BinaryIO, destination: BinaryIO, associated_data: bytes, chunk_size: int
    ) -> None:
        with self.new_encrypting_stream(destination, associated_data) as stream:
            _copy(source, stream, chunk_size)

    def decrypt_stream(
        self, source: BinaryIO, destination: BinaryIO, associated_data: bytes, chunk_size: int
    ) -> None:
        start = source.tell()
        for entry in self._set.entries:
            source.seek(start)
            attempt = io.BytesIO()
            try:
                with entry.primitive.new_decrypting_stream(source, associated_data) as stream:
                    _copy(stream, attempt, chunk_size)
            except _CANDIDATE_ERRORS:
                continue
            destination.write(attempt.getvalue())
            return
        raise CryptoError("decryption failed")


_WRAPPERS: Dict[Family, Callable[[PrimitiveSet], Any]] = {
    Family.AEAD: WrappedAead,
    Family.DAEAD: WrappedDeterministicAead,
    Family.MAC: WrappedMac,
    Family.PRF: WrappedPrfSet,
    Family.SIGN: WrappedSign,
    Family.VERIFY: WrappedVerify,
    Family.HYBRID_ENCRYPT: WrappedHybridEncrypt,
    Family.HYBRID_DECRYPT: WrappedHybridDecrypt,
    Family.STREAMING_AEAD: WrappedStreamingAead,
}


def primitive_set(handle: "KeysetHandle", family: Family) -> PrimitiveSet:
    entries: List[Entry] = []
    primary: Optional[Entry] = None
    for key in handle.enabled_keys():
        if key.key_data is None:
            raise KeysetError(f"enabled key {key.key_id} has no key data")
        manager = REGISTRY.get(key.key_data.type_url)
        if manager.family is not family:
            raise PrimitiveError(
                f"key type {key.key_data.type_url} provides {manager.family.value}, not {family.value}"
            )
        if family in PREFIXLESS and key.output_prefix_type != OutputPrefixType.RAW:
            raise PrimitiveError(f"{family.value} keys must use the RAW output prefix")
        entry = Entry(
            key_id=key.key_id,
            prefix_type=key.output_prefix_type,
            prefix=key_prefix(key),
            primitive=manager.primitive(key.key_data.value),
        )
        entries.append(entry)
        if key.key_id == handle.primary_key_id:
            primary = entry
    primitives = PrimitiveSet(entries, primary)
    if family in _NEEDS_PRIMARY:
        primitives.require_primary()
    return primitives


def build(handle: "KeysetHandle", family: Family | str) -> Any:
    """Return the wrapped capability of ``family`` backed by ``handle``."""

    family = Family(family)
    return _WRAPPERS[family](primitive_set(handle, family))


__all__ = [
    "Entry",
    "PrimitiveSet",
    "WrappedAead",
    "WrappedDeterministicAead",
    "WrappedMac",
    "WrappedPrfSet",
    "WrappedSign",
    "WrappedVerify",
    "WrappedHybridEncrypt",
    "WrappedHybridDecrypt",
    "WrappedStreamingAead",
    "primitive_set",
    "build",
]
