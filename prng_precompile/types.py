"""
prng_precompile.types — value objects shared by the codec and the generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

WORD = 32
ADDRESS_LEN = 20
NONCE_LEN = 8
SELECTOR_LEN = 4

UINT256_MAX = (1 << 256) - 1
UINT64_MAX = (1 << 64) - 1


@dataclass(frozen=True)
class SeedMaterial:
    """Entropy root of one call: server_seed binds the precompile, user_seed the caller."""
    server_seed: bytes
    user_seed: bytes


@dataclass(frozen=True)
class GenerationRequest:
    """
    Decoded call arguments.

    Fields
    ------
    n:      Number of values requested (already checked to fit uint256).
    nonce:  Explicit u64 nonce from the payload, or None when the deployment
            reads it from state.
    caller: Seed caller carried in the payload (raw layout), or None to use
            the calling account.
    """
    n: int
    nonce: Optional[int] = None
    caller: Optional[bytes] = None


__all__ = [
    "WORD",
    "ADDRESS_LEN",
    "NONCE_LEN",
    "SELECTOR_LEN",
    "UINT256_MAX",
    "UINT64_MAX",
    "SeedMaterial",
    "GenerationRequest",
]
