"""
Codec strategies: one capability, two interchangeable wire layouts.

TypedABICodec ("typed")
    request:  selector(4) || u256(n)                       exactly 32 argument bytes
    response: u256(0x20) || u256(len) || len x u256        ABI `uint256[]`

RawCompositeCodec ("raw")
    request:  caller(20) || u256(n) || u64(nonce)          at least 60 bytes
    response: u256(len) || len x u256

The dispatcher strips and routes the selector itself and hands the argument
bytes to `decode_args`; `decode_request` takes the full call data and is what
standalone callers use. Both raise InvalidInputLength before interpreting any
field of a short payload.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from ..config import LAYOUT_RAW, LAYOUT_TYPED
from ..errors import EncodingFailure, InvalidInputLength, UnknownSelector
from ..types import ADDRESS_LEN, NONCE_LEN, WORD, GenerationRequest
from .decoding import decode_counted_words, decode_u64, decode_uint256_array, decode_word, split_selector
from .encoding import encode_call, encode_counted_words, encode_raw_request, encode_uint256_array
from .types import RANDOM_NCSPRNG_ABI, FunctionABI, ValidationError

__all__ = [
    "Codec",
    "TypedABICodec",
    "RawCompositeCodec",
    "RAW_REQUEST_LEN",
    "get_codec",
]

RAW_REQUEST_LEN = ADDRESS_LEN + WORD + NONCE_LEN


class Codec(Protocol):
    layout: str

    def decode_request(self, input: bytes) -> GenerationRequest: ...
    def decode_args(self, args: bytes) -> GenerationRequest: ...
    def encode_response(self, values: Sequence[int]) -> bytes: ...
    def decode_response(self, output: bytes) -> List[int]: ...


def _encode_or_fail(encoder, values: Sequence[int]) -> bytes:
    try:
        return encoder(values)
    except ValidationError as e:
        raise EncodingFailure(str(e)) from e


class TypedABICodec:
    layout = LAYOUT_TYPED

    def __init__(self, fn: FunctionABI = RANDOM_NCSPRNG_ABI) -> None:
        self.fn = fn

    def decode_request(self, input: bytes) -> GenerationRequest:
        selector, args = split_selector(input)
        if selector != self.fn.selector:
            raise UnknownSelector(selector)
        return self.decode_args(args)

    def decode_args(self, args: bytes) -> GenerationRequest:
        if len(args) != WORD:
            raise InvalidInputLength(len(args), WORD)
        n, _ = decode_word(args)
        return GenerationRequest(n=n)

    def encode_request(self, n: int, *, caller: Optional[bytes] = None, nonce: Optional[int] = None) -> bytes:
        # The typed layout takes the caller from the call context and the
        # nonce from state; neither travels in the payload.
        return encode_call(self.fn, n)

    def encode_response(self, values: Sequence[int]) -> bytes:
        return _encode_or_fail(encode_uint256_array, values)

    def decode_response(self, output: bytes) -> List[int]:
        return decode_uint256_array(output)


class RawCompositeCodec:
    layout = LAYOUT_RAW

    def decode_request(self, input: bytes) -> GenerationRequest:
        if len(input) < RAW_REQUEST_LEN:
            raise InvalidInputLength(len(input), RAW_REQUEST_LEN, minimum=True)
        caller = bytes(input[:ADDRESS_LEN])
        n, i = decode_word(input, ADDRESS_LEN)
        nonce, _ = decode_u64(input, i)
        return GenerationRequest(n=n, nonce=nonce, caller=caller)

    def decode_args(self, args: bytes) -> GenerationRequest:
        return self.decode_request(args)

    def encode_request(self, n: int, *, caller: Optional[bytes] = None, nonce: Optional[int] = None) -> bytes:
        if caller is None or nonce is None:
            raise ValidationError("raw layout requests carry both caller and nonce")
        return encode_raw_request(caller, n, nonce)

    def encode_response(self, values: Sequence[int]) -> bytes:
        return _encode_or_fail(encode_counted_words, values)

    def decode_response(self, output: bytes) -> List[int]:
        return decode_counted_words(output)


def get_codec(layout: str) -> Codec:
    if layout == LAYOUT_TYPED:
        return TypedABICodec()
    if layout == LAYOUT_RAW:
        return RawCompositeCodec()
    raise ValueError(f"unknown layout {layout!r}")
