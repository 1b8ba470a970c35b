"""
prng_precompile.precompiles.random_ncsprng — the random-value precompile.

Functions (typed layout)
------------------------
    randomNCSPRNG(uint256 n) view returns (uint256[] randomValues)
    randomPRNG()             view returns (uint256 randomValue)

`randomPRNG()` is the single-value form: it returns value_0 of the same
derivation `randomNCSPRNG` uses, with the nonce taken from the configured
source. It takes no count, so the `max_count` ceiling does not apply to it.
The raw layout registers only the sequence function.

Each call: charge gas for the payload → decode → check the count → resolve
the nonce (read-only) → derive the seed → generate → encode.

Security
--------
Outputs are derivable by anyone from public addresses and the nonce. Do not
use this precompile where the value itself is at stake (lotteries, leader
election) without an additional entropy layer; see runtime.entropy.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..abi.codec import Codec, get_codec
from ..abi.encoding import encode_call, encode_uint256
from ..abi.types import RANDOM_NCSPRNG_ABI, RANDOM_PRNG_ABI
from ..config import LAYOUT_TYPED, PrecompileConfig, load_config
from ..errors import InvalidInputLength
from ..metrics import METRICS, Metrics
from ..runtime import generator as gen
from ..runtime.entropy import NO_ENTROPY, EntropySource
from ..runtime.gasmeter import GasSchedule
from ..runtime.state import guard
from ..types import GenerationRequest
from .contract import PrecompileCall, StatefulPrecompiledContract, StatefulPrecompileFunction

log = logging.getLogger(__name__)


class RandomPrecompile:
    """
    Binds a deployment's configuration to the generator.

    Holds no per-call state; one instance may serve any number of calls.
    """

    def __init__(
        self,
        config: Optional[PrecompileConfig] = None,
        *,
        entropy: EntropySource = NO_ENTROPY,
        metrics: Metrics = METRICS,
    ) -> None:
        self.config = config or load_config()
        self.codec: Codec = get_codec(self.config.layout)
        self.schedule = GasSchedule.from_config(self.config)
        self.entropy = entropy
        self.metrics = metrics

    def required_gas(self, input: bytes) -> int:
        return self.schedule.required_gas(input)

    # ------------------------------------------------------------------ #

    def _values(self, call: PrecompileCall, req: GenerationRequest, max_count: int) -> List[int]:
        n = gen.check_count(req.n, max_count)
        caller = req.caller if req.caller is not None else call.caller
        # The generator never writes; it always gets a read-only view.
        state = guard(call.accessible_state.get_state_db(), True)
        nonce = gen.resolve_nonce(req, state, caller, self.config.nonce_source)
        extra = self.entropy.contribution(caller, call.accessible_state.get_block_env())
        seed = gen.derive_seed(call.address, caller, extra=extra)
        log.debug("seed_derived", extra={"caller": "0x" + caller.hex(), "nonce": nonce, "n": n})
        return gen.generate_values(seed, nonce, n)

    def random_ncsprng(self, call: PrecompileCall) -> bytes:
        call.gas.consume(self.required_gas(call.input))
        req = self.codec.decode_args(call.args)
        values = self._values(call, req, self.config.max_count)
        self.metrics.observe_values(len(values))
        return self.codec.encode_response(values)

    def random_prng(self, call: PrecompileCall) -> bytes:
        call.gas.consume(self.required_gas(call.input))
        if call.args:
            raise InvalidInputLength(len(call.args), 0)
        # single fixed value; exempt from max_count
        (value,) = self._values(call, GenerationRequest(n=1), 1)
        self.metrics.observe_values(1)
        return encode_uint256(value)

    # ------------------------------------------------------------------ #

    def contract(self) -> StatefulPrecompiledContract:
        if self.config.layout == LAYOUT_TYPED:
            functions = [
                StatefulPrecompileFunction(RANDOM_NCSPRNG_ABI.selector, self.random_ncsprng, RANDOM_NCSPRNG_ABI.name),
                StatefulPrecompileFunction(RANDOM_PRNG_ABI.selector, self.random_prng, RANDOM_PRNG_ABI.name),
            ]
            return StatefulPrecompiledContract(functions=functions, metrics=self.metrics)
        return StatefulPrecompiledContract(fallback=self.random_ncsprng, metrics=self.metrics)


def create_random_precompile(
    config: Optional[PrecompileConfig] = None,
    *,
    entropy: EntropySource = NO_ENTROPY,
    metrics: Metrics = METRICS,
) -> StatefulPrecompiledContract:
    """Build the stateful precompile contract for a deployment."""
    return RandomPrecompile(config, entropy=entropy, metrics=metrics).contract()


# Client-side payload helpers


def pack_random_ncsprng_input(n: int) -> bytes:
    return encode_call(RANDOM_NCSPRNG_ABI, n)


def pack_random_prng_input() -> bytes:
    return encode_call(RANDOM_PRNG_ABI)


def unpack_random_ncsprng_output(output: bytes, layout: str = LAYOUT_TYPED) -> List[int]:
    return get_codec(layout).decode_response(output)


__all__ = [
    "RandomPrecompile",
    "create_random_precompile",
    "pack_random_ncsprng_input",
    "pack_random_prng_input",
    "unpack_random_ncsprng_output",
]
