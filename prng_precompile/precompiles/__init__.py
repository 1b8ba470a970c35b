"""
Stateful precompiles: the dispatch framework, the random-value precompile and
the reserved-address registry.
"""

from __future__ import annotations

from .contract import (PrecompileCall, PrecompileResult,
                       StatefulPrecompiledContract, StatefulPrecompileFunction)
from .random_ncsprng import (RandomPrecompile, create_random_precompile,
                             pack_random_ncsprng_input, pack_random_prng_input,
                             unpack_random_ncsprng_output)
from .registry import (PrecompileRegistry, default_registry,
                       is_reserved_address)

__all__ = [
    "PrecompileCall",
    "PrecompileResult",
    "StatefulPrecompiledContract",
    "StatefulPrecompileFunction",
    "RandomPrecompile",
    "create_random_precompile",
    "pack_random_ncsprng_input",
    "pack_random_prng_input",
    "unpack_random_ncsprng_output",
    "PrecompileRegistry",
    "default_registry",
    "is_reserved_address",
]
