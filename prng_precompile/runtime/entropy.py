"""
prng_precompile.runtime.entropy — injectable entropy contribution.

The generator's output is a function of public data only (addresses and a
nonce), so anyone can precompute it. That is fine for games and simulations
and unsuitable for lotteries, leader election or anything else with value at
stake.

Deployments that need unpredictability layer a commit-reveal or beacon
scheme on top and feed its output through an `EntropySource`. Whatever the
source returns must itself be deterministic for the transaction (every node
has to see the same bytes), e.g. a finalized beacon round.

`NoEntropy` is the default and contributes nothing, which leaves the seed
derivation exactly as documented in `generator`.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .context import BlockEnv


@runtime_checkable
class EntropySource(Protocol):
    def contribution(self, caller: bytes, block_env: Optional[BlockEnv]) -> bytes: ...


class NoEntropy:
    def contribution(self, caller: bytes, block_env: Optional[BlockEnv]) -> bytes:
        return b""


class StaticEntropy:
    """Fixed contribution; used when the host has already resolved a beacon value."""

    __slots__ = ("_value",)

    def __init__(self, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError("entropy value must be bytes-like")
        self._value = bytes(value)

    def contribution(self, caller: bytes, block_env: Optional[BlockEnv]) -> bytes:
        return self._value


NO_ENTROPY = NoEntropy()

__all__ = ["EntropySource", "NoEntropy", "StaticEntropy", "NO_ENTROPY"]
