"""
prng_precompile.runtime.hash_api — hashing primitives used by seed derivation.

Strictly bytes-in, bytes-out (no implicit text/encoding).

Provided APIs
-------------
- keccak256(data) -> bytes           # Ethereum Keccak-256 (pycryptodome)
- keccak256_hex(data) -> str
- hash_concat_keccak256(*chunks) -> bytes
- sha256(data) -> bytes
- hmac_sha256(key, *chunks) -> bytes
- function_selector(signature) -> bytes   # keccak256(signature)[:4]
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Iterable

from Crypto.Hash import keccak as _keccak


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise TypeError(f"{name} must be bytes-like (got {type(buf).__name__})")


def _new_keccak256():
    return _keccak.new(digest_bits=256)


def keccak256(data: bytes | bytearray | memoryview) -> bytes:
    """Keccak-256 (pre-SHA3 padding) as used by Ethereum."""
    h = _new_keccak256()
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def keccak256_hex(data: bytes | bytearray | memoryview) -> str:
    return keccak256(data).hex()


def _hash_concat(chunks: Iterable[bytes | bytearray | memoryview], h) -> bytes:
    for i, c in enumerate(chunks):
        h.update(_ensure_bytes(c, f"chunk[{i}]"))
    return h.digest()


def hash_concat_keccak256(*chunks: bytes | bytearray | memoryview) -> bytes:
    return _hash_concat(chunks, _new_keccak256())


def sha256(data: bytes | bytearray | memoryview) -> bytes:
    return hashlib.sha256(_ensure_bytes(data, "data")).digest()


def hmac_sha256(key: bytes | bytearray | memoryview, *chunks: bytes | bytearray | memoryview) -> bytes:
    """HMAC-SHA256 over the concatenation of `chunks`."""
    mac = hmac.new(_ensure_bytes(key, "key"), digestmod=hashlib.sha256)
    for i, c in enumerate(chunks):
        mac.update(_ensure_bytes(c, f"chunk[{i}]"))
    return mac.digest()


def function_selector(signature: str) -> bytes:
    """4-byte method identifier of a canonical signature, e.g. 'randomNCSPRNG(uint256)'."""
    if not isinstance(signature, str) or "(" not in signature:
        raise ValueError(f"not a canonical signature: {signature!r}")
    return keccak256(signature.encode("ascii"))[:4]


__all__ = [
    "keccak256",
    "keccak256_hex",
    "hash_concat_keccak256",
    "sha256",
    "hmac_sha256",
    "function_selector",
]
