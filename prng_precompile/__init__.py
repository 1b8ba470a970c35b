"""
prng_precompile — deterministic random-value precompile for EVM-style hosts.

This module exposes a small, stable façade:

- __version__ / version(): semantic version string
- run_call(caller, input, supplied_gas, *, state=None, read_only=False,
           config=None, address=None) -> PrecompileResult
    Execute one call against a registry holding the random precompile.
- generate(contract_address, caller_address, nonce, n) -> list[int]
    The bare derivation, for off-chain verification of on-chain outputs.

The values are reproducible by anyone who knows the addresses and nonce; they
are not a source of unpredictable randomness.

Heavy imports are lazy so that `import prng_precompile` stays cheap.
"""

from __future__ import annotations

import importlib
from typing import Any, List, Optional

from .version import __version__


def version() -> str:
    """Return the package's semantic version string."""
    return __version__


def run_call(
    caller: bytes,
    input: bytes,
    supplied_gas: int,
    *,
    state: Any = None,
    read_only: bool = False,
    config: Any = None,
    address: Optional[bytes] = None,
):
    """
    Execute a single precompile call with a fresh default registry.

    Parameters
    ----------
    caller : bytes
        20-byte calling account.
    input : bytes
        Raw call data in the configured layout.
    supplied_gas : int
        Gas available to the call.
    state : StateDB | None
        State capability object; a fresh in-memory state when None.
    read_only : bool
        Static-call flag.
    config : PrecompileConfig | None
        Deployment configuration; environment/defaults when None.
    address : bytes | None
        Precompile address to call; the configured address when None.

    Returns
    -------
    PrecompileResult
        output, remaining_gas and (on failure) the typed error.
    """
    cfg_mod = importlib.import_module(".config", __name__)
    registry_mod = importlib.import_module(".precompiles.registry", __name__)
    context_mod = importlib.import_module(".runtime.context", __name__)
    state_mod = importlib.import_module(".runtime.state", __name__)

    cfg = config or cfg_mod.load_config()
    registry = registry_mod.default_registry(cfg)
    accessible = context_mod.AccessibleState(state_db=state if state is not None else state_mod.MemoryStateDB())
    return registry.call(address or cfg.address, accessible, caller, input, supplied_gas, read_only)


def generate(contract_address: bytes, caller_address: bytes, nonce: int, n: int) -> List[int]:
    """Reproduce a sequence off-chain (honours the configured count ceiling)."""
    cfg = importlib.import_module(".config", __name__).load_config()
    gen = importlib.import_module(".runtime.generator", __name__)
    return gen.generate(contract_address, caller_address, nonce, n, max_count=cfg.max_count)


__all__ = [
    "__version__",
    "version",
    "run_call",
    "generate",
]
