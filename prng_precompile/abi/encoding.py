"""
Fixed-width encoders for the random precompile's two wire layouts.

Primitives
----------
- uint256:  32 bytes, big-endian, zero-padded
- u64:      8 bytes, big-endian (raw-layout nonce)
- address:  20 raw bytes (raw layout) or left-padded to a 32-byte word (typed)

Composites
----------
- encode_uint256_array(values)  ABI dynamic array:  u256(0x20) || u256(len) || words...
- encode_counted_words(values)  raw response:       u256(len) || words...
- encode_call(fn, args)         typed call data:    selector(4) || words...
- encode_raw_request(...)       raw call data:      caller(20) || u256(n) || u64(nonce)

Nothing here is variable-length ambiguous: every element is a whole word and
every sequence is prefixed by its element count.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from ..types import ADDRESS_LEN, NONCE_LEN, WORD
from .types import FunctionABI, ValidationError, coerce_uint

__all__ = [
    "encode_uint256",
    "encode_u64",
    "encode_address_word",
    "encode_uint256_array",
    "encode_counted_words",
    "encode_call",
    "encode_raw_request",
]


def encode_uint256(value: Any) -> bytes:
    return coerce_uint(value, bits=256).to_bytes(WORD, "big")


def encode_u64(value: Any) -> bytes:
    return coerce_uint(value, bits=64).to_bytes(NONCE_LEN, "big")


def _raw_address(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise ValidationError("address must be bytes")
    b = bytes(value)
    if len(b) != ADDRESS_LEN:
        raise ValidationError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    return b


def encode_address_word(value: Any) -> bytes:
    return _raw_address(value).rjust(WORD, b"\x00")


def _words(values: Iterable[Any]) -> bytes:
    return b"".join(encode_uint256(v) for v in values)


def encode_uint256_array(values: Sequence[Any]) -> bytes:
    """ABI-encode a lone `uint256[]` return value (head offset, length, items)."""
    return encode_uint256(WORD) + encode_uint256(len(values)) + _words(values)


def encode_counted_words(values: Sequence[Any]) -> bytes:
    return encode_uint256(len(values)) + _words(values)


def encode_call(fn: FunctionABI, *args: Any) -> bytes:
    """Build typed call data for a function whose inputs are all static words."""
    if len(args) != len(fn.inputs):
        raise ValidationError(f"{fn.name} takes {len(fn.inputs)} arguments, got {len(args)}")
    out = bytearray(fn.selector)
    for typ, arg in zip(fn.inputs, args):
        if typ == "uint256":
            out += encode_uint256(arg)
        elif typ == "address":
            out += encode_address_word(arg)
        else:
            raise ValidationError(f"cannot encode {typ} as a call argument")
    return bytes(out)


def encode_raw_request(caller: bytes, n: int, nonce: int) -> bytes:
    return _raw_address(caller) + encode_uint256(n) + encode_u64(nonce)
