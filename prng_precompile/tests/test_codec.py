from __future__ import annotations

import pytest

from prng_precompile.abi import (RANDOM_NCSPRNG_ABI, RANDOM_PRNG_ABI,
                                 ABITypeError, FunctionABI,
                                 RawCompositeCodec, TypedABICodec,
                                 ValidationError, coerce_uint,
                                 decode_counted_words, decode_uint256_array,
                                 encode_uint256, encode_uint256_array,
                                 get_codec, parse_abi)
from prng_precompile.errors import (EncodingFailure, InvalidInputLength,
                                    MissingSelector, UnknownSelector)
from prng_precompile.types import UINT256_MAX

from .conftest import CALLER, reference_keccak


def test_selectors_are_keccak_prefixes():
    assert RANDOM_NCSPRNG_ABI.signature == "randomNCSPRNG(uint256)"
    assert RANDOM_NCSPRNG_ABI.selector == reference_keccak(b"randomNCSPRNG(uint256)")[:4]
    assert RANDOM_PRNG_ABI.selector == reference_keccak(b"randomPRNG()")[:4]
    assert RANDOM_NCSPRNG_ABI.state_mutability == "view"


def test_typed_request_round_trip():
    codec = TypedABICodec()
    payload = codec.encode_request(3)
    assert len(payload) == 36
    assert payload[:4] == RANDOM_NCSPRNG_ABI.selector
    req = codec.decode_request(payload)
    assert req.n == 3
    assert req.nonce is None and req.caller is None


def test_typed_decode_errors():
    codec = TypedABICodec()
    with pytest.raises(MissingSelector):
        codec.decode_request(b"\x01\x02")
    with pytest.raises(UnknownSelector):
        codec.decode_request(b"\xde\xad\xbe\xef" + encode_uint256(1))
    with pytest.raises(InvalidInputLength) as ei:
        codec.decode_request(RANDOM_NCSPRNG_ABI.selector + b"\x00" * 31)
    assert ei.value.data == {"got": 31, "expected": 32, "minimum": False}
    with pytest.raises(InvalidInputLength):
        codec.decode_args(encode_uint256(1) + b"\x00")


def test_typed_decode_preserves_full_uint256():
    req = TypedABICodec().decode_args(encode_uint256(UINT256_MAX))
    assert req.n == UINT256_MAX


def test_typed_response_layout():
    out = TypedABICodec().encode_response([1, 2])
    assert out == encode_uint256(32) + encode_uint256(2) + encode_uint256(1) + encode_uint256(2)
    assert TypedABICodec().decode_response(out) == [1, 2]


def test_raw_request_fields():
    codec = RawCompositeCodec()
    payload = codec.encode_request(5, caller=CALLER, nonce=42)
    assert len(payload) == 60
    assert payload[:20] == CALLER
    assert payload[-8:] == (42).to_bytes(8, "big")
    req = codec.decode_request(payload)
    assert (req.caller, req.n, req.nonce) == (CALLER, 5, 42)


def test_raw_request_needs_caller_and_nonce():
    with pytest.raises(ValidationError):
        RawCompositeCodec().encode_request(1, caller=CALLER)


def test_raw_request_minimum_length():
    codec = RawCompositeCodec()
    with pytest.raises(InvalidInputLength) as ei:
        codec.decode_request(b"\x00" * 59)
    assert ei.value.data["minimum"] is True
    payload = codec.encode_request(2, caller=CALLER, nonce=1)
    assert codec.decode_request(payload + b"junk") == codec.decode_request(payload)


def test_raw_response_layout():
    out = RawCompositeCodec().encode_response([7])
    assert out == encode_uint256(1) + encode_uint256(7)
    assert RawCompositeCodec().decode_response(out) == [7]
    assert RawCompositeCodec().encode_response([]) == encode_uint256(0)


@pytest.mark.parametrize("codec", [TypedABICodec(), RawCompositeCodec()])
def test_encoding_failure_on_out_of_range(codec):
    with pytest.raises(EncodingFailure):
        codec.encode_response([UINT256_MAX + 1])
    with pytest.raises(EncodingFailure):
        codec.encode_response([-1])


def test_response_decoders_reject_malformed_buffers():
    good = encode_uint256_array([1, 2, 3])
    with pytest.raises(ValueError):
        decode_uint256_array(good[:-1])
    with pytest.raises(ValueError):
        decode_uint256_array(good + b"\x00")
    with pytest.raises(ValueError):
        decode_uint256_array(encode_uint256(64) + good[32:])
    with pytest.raises(ValueError):
        decode_counted_words(encode_uint256(2) + encode_uint256(1))


def test_get_codec():
    assert isinstance(get_codec("typed"), TypedABICodec)
    assert isinstance(get_codec("raw"), RawCompositeCodec)
    with pytest.raises(ValueError):
        get_codec("rlp")


def test_coerce_uint():
    assert coerce_uint("0xff") == 255
    assert coerce_uint(2**64 - 1, bits=64) == 2**64 - 1
    for bad in (True, -1, 2**64, "12", 1.5):
        with pytest.raises(ValidationError):
            coerce_uint(bad, bits=64)


def test_parse_abi_rejects_unsupported_types():
    with pytest.raises(ABITypeError):
        parse_abi('[{"type": "function", "name": "f", "inputs": [{"type": "bytes"}]}]')
    with pytest.raises(ABITypeError):
        parse_abi("{}")
    with pytest.raises(ABITypeError):
        FunctionABI.from_dict({"type": "event", "name": "E"})
