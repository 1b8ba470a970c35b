"""
Inverse decoders for the fixed-width layouts in `encoding`.

Top-level:
- decode_word(buf, offset) -> (int, new_offset)
- decode_u64(buf, offset) -> (int, new_offset)
- split_selector(buf) -> (selector, args)
- decode_uint256_array(buf) -> list[int]
- decode_counted_words(buf) -> list[int]

Truncated or trailing-garbage buffers raise ValueError; layout-level length
checks that the host must see as InvalidInputLength live in `codec`.
"""

from __future__ import annotations

from typing import List, Tuple

from ..errors import MissingSelector
from ..types import NONCE_LEN, SELECTOR_LEN, WORD

__all__ = [
    "decode_word",
    "decode_u64",
    "split_selector",
    "decode_uint256_array",
    "decode_counted_words",
]


def _read_exact(buf: bytes, offset: int, n: int) -> Tuple[bytes, int]:
    j = offset + n
    if j > len(buf):
        raise ValueError("truncated payload")
    return buf[offset:j], j


def decode_word(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    b, j = _read_exact(buf, offset, WORD)
    return int.from_bytes(b, "big"), j


def decode_u64(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    b, j = _read_exact(buf, offset, NONCE_LEN)
    return int.from_bytes(b, "big"), j


def split_selector(buf: bytes) -> Tuple[bytes, bytes]:
    """Split typed call data into (4-byte selector, argument bytes)."""
    if len(buf) < SELECTOR_LEN:
        raise MissingSelector(len(buf))
    return bytes(buf[:SELECTOR_LEN]), bytes(buf[SELECTOR_LEN:])


def _words(buf: bytes, offset: int, count: int) -> List[int]:
    if len(buf) != offset + count * WORD:
        raise ValueError(f"expected {count} words after offset {offset}, buffer has {len(buf)} bytes")
    return [int.from_bytes(buf[i : i + WORD], "big") for i in range(offset, len(buf), WORD)]


def decode_uint256_array(buf: bytes) -> List[int]:
    head, i = decode_word(buf, 0)
    if head != WORD:
        raise ValueError(f"unexpected dynamic array offset {head}")
    count, i = decode_word(buf, i)
    return _words(buf, i, count)


def decode_counted_words(buf: bytes) -> List[int]:
    count, i = decode_word(buf, 0)
    return _words(buf, i, count)
