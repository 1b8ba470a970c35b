"""
prng_precompile.runtime.generator — seed derivation and value generation.

Purpose
-------
Produce `n` pseudo-random 256-bit values that any host can reproduce
bit-for-bit from `(contract_address, caller_address, nonce, n)`. It is **not**
a source of unpredictable randomness (see `entropy`).

Algorithm
---------
    server_seed = keccak256(contract_address)
    user_seed   = keccak256(caller_address || server_seed)
    value_i     = HMAC-SHA256(key=server_seed,
                              msg=user_seed || u64be(nonce) || u64be(i))   for i in 0..n-1

Each 32-byte digest is read as a big-endian unsigned integer and used as-is.
Values come out in index order.

Everything here is a pure function of its arguments: no caches, no module
state, no clock. Concurrent calls need no locking.

Typical usage
-------------
from prng_precompile.runtime import generator as gen

seed = gen.derive_seed(contract_addr, caller_addr)
values = gen.generate_values(seed, nonce=7, n=3)
"""

from __future__ import annotations

from typing import Iterator, List

from ..config import NONCE_FROM_PAYLOAD, NONCE_FROM_STATE
from ..errors import RequestTooLarge, ValueOverflow
from ..types import NONCE_LEN, UINT64_MAX, UINT256_MAX, GenerationRequest, SeedMaterial
from . import hash_api as _h
from .state import StateDB


def _u64be(x: int, name: str) -> bytes:
    if not isinstance(x, int) or x < 0:
        raise ValueError(f"{name} must be a non-negative int, got {x!r}")
    if x > UINT64_MAX:
        raise ValueOverflow(x, 64)
    return x.to_bytes(NONCE_LEN, "big")


def derive_seed(contract_address: bytes, caller_address: bytes, *, extra: bytes = b"") -> SeedMaterial:
    """
    Derive the per-(precompile, caller) seed material.

    `extra` is the optional entropy contribution; empty by default, in which
    case it does not touch the preimage.
    """
    server_seed = _h.keccak256(contract_address)
    user_seed = _h.hash_concat_keccak256(caller_address, server_seed, extra)
    return SeedMaterial(server_seed=server_seed, user_seed=user_seed)


def check_count(n: int, max_count: int) -> int:
    """
    Validate a requested count.

    - n must fit uint256 and the generator's u64 index domain → ValueOverflow
    - n must not exceed the configured ceiling                → RequestTooLarge
    """
    if not isinstance(n, int) or n < 0:
        raise ValueError(f"n must be a non-negative int, got {n!r}")
    if n > UINT256_MAX:
        raise ValueOverflow(n, 256)
    if n > UINT64_MAX:
        raise ValueOverflow(n, 64)
    if n > max_count:
        raise RequestTooLarge(n, max_count)
    return n


def iter_values(seed: SeedMaterial, nonce: int, n: int) -> Iterator[int]:
    """Yield value_0 .. value_{n-1} lazily, in order."""
    nonce_b = _u64be(nonce, "nonce")
    for i in range(n):
        digest = _h.hmac_sha256(seed.server_seed, seed.user_seed, nonce_b, _u64be(i, "index"))
        yield int.from_bytes(digest, "big")


def generate_values(seed: SeedMaterial, nonce: int, n: int) -> List[int]:
    return list(iter_values(seed, nonce, n))


def generate(contract_address: bytes, caller_address: bytes, nonce: int, n: int, *, max_count: int) -> List[int]:
    """One-shot: validate `n`, derive the seed and return the full sequence."""
    check_count(n, max_count)
    return generate_values(derive_seed(contract_address, caller_address), nonce, n)


def resolve_nonce(request: GenerationRequest, state: StateDB, caller: bytes, source: str) -> int:
    """
    Pick the nonce for this call according to the deployment's nonce source.

    - "state":   the caller's current account nonce (read only, never bumped)
    - "payload": the explicit u64 carried in the call data
    """
    if source == NONCE_FROM_STATE:
        return state.get_nonce(caller)
    if source == NONCE_FROM_PAYLOAD:
        if request.nonce is None:
            raise ValueError("payload nonce source requires a nonce in the request")
        return request.nonce
    raise ValueError(f"unknown nonce source {source!r}")


__all__ = [
    "derive_seed",
    "check_count",
    "iter_values",
    "generate_values",
    "generate",
    "resolve_nonce",
]
