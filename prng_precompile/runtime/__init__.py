"""
prng_precompile — runtime package

Gas metering, the state capability surface, hashing and the seed/value
generator used by the random precompile.

Convenience re-exports live here so callers can do:

    from prng_precompile.runtime import GasMeter, MemoryStateDB, CallContext
    from prng_precompile.runtime import generator, hashing  # module namespaces

Notes
-----
- No wall-clock I/O or system randomness is reachable from here.
- The generator only ever sees a read-only state view.
"""

from __future__ import annotations

from ..version import __version__  # re-export
from . import entropy as entropy
from . import generator as generator
from . import hash_api as hashing  # avoid shadowing builtin `hash`
from . import state_adapter as state_adapter
from .context import AccessibleState, BlockEnv, CallContext
from .gasmeter import GasMeter, GasSchedule, deduct_gas
from .state import MemoryStateDB, ReadOnlyStateDB, StateDB, guard

__all__ = [
    "__version__",
    # Core classes
    "GasMeter",
    "GasSchedule",
    "deduct_gas",
    "StateDB",
    "MemoryStateDB",
    "ReadOnlyStateDB",
    "guard",
    "AccessibleState",
    "BlockEnv",
    "CallContext",
    # Namespaces (modules)
    "entropy",
    "generator",
    "hashing",
    "state_adapter",
]
