"""
prng_precompile.precompiles.registry — reserved addresses → precompiles.

Precompiles live in a reserved low address range: the 16 leading bytes of a
reserved address are zero (value in [1, 2**32)). Addresses derived from keys
or CREATE/CREATE2 hashes land there with negligible probability, so
precompiles cannot collide with user-deployed code. The zero address is never
reserved.

The registry is thread-safe; hosts that execute transactions in parallel
lanes can share one instance.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Dict, Iterable, Optional, Tuple

from ..config import PrecompileConfig, load_config
from ..errors import RegistryError
from ..metrics import METRICS, Metrics
from ..runtime.context import AccessibleState, to_address
from ..runtime.entropy import NO_ENTROPY, EntropySource
from .contract import PrecompileResult, StatefulPrecompiledContract
from .random_ncsprng import create_random_precompile

log = logging.getLogger(__name__)

RESERVED_LIMIT = 1 << 32


def is_reserved_address(address: bytes) -> bool:
    v = int.from_bytes(to_address(address), "big")
    return 0 < v < RESERVED_LIMIT


class PrecompileRegistry:
    """
    Maps reserved addresses to stateful precompiles and routes calls.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._contracts: Dict[bytes, StatefulPrecompiledContract] = {}

    # ---- registration API ----

    def register(self, address: bytes, contract: StatefulPrecompiledContract) -> None:
        addr = to_address(address)
        if not is_reserved_address(addr):
            raise RegistryError(f"0x{addr.hex()} is outside the reserved precompile range")
        if not isinstance(contract, StatefulPrecompiledContract):
            raise TypeError("contract must be a StatefulPrecompiledContract")
        with self._lock:
            if addr in self._contracts:
                raise RegistryError(f"a precompile is already registered at 0x{addr.hex()}")
            self._contracts[addr] = contract
        log.info("precompile_registered", extra={"address": "0x" + addr.hex()})

    def unregister(self, address: bytes) -> None:
        addr = to_address(address)
        with self._lock:
            self._contracts.pop(addr, None)
        log.info("precompile_unregistered", extra={"address": "0x" + addr.hex()})

    def is_precompile(self, address: bytes) -> bool:
        with self._lock:
            return to_address(address) in self._contracts

    def addresses(self) -> Tuple[bytes, ...]:
        with self._lock:
            return tuple(sorted(self._contracts))

    def get(self, address: bytes) -> Optional[StatefulPrecompiledContract]:
        with self._lock:
            return self._contracts.get(to_address(address))

    # ---- dispatch API ----

    def call(
        self,
        address: bytes,
        accessible_state: AccessibleState,
        caller: bytes,
        input: bytes,
        supplied_gas: int,
        read_only: bool = False,
    ) -> PrecompileResult:
        contract = self.get(address)
        if contract is None:
            raise RegistryError(f"no precompile registered at 0x{to_address(address).hex()}")
        return contract.run(accessible_state, caller, address, input, supplied_gas, read_only)


def default_registry(
    config: Optional[PrecompileConfig] = None,
    *,
    entropy: EntropySource = NO_ENTROPY,
    metrics: Metrics = METRICS,
    extra: Iterable[Tuple[bytes, StatefulPrecompiledContract]] = (),
) -> PrecompileRegistry:
    """Registry with the random precompile at the configured address."""
    cfg = config or load_config()
    reg = PrecompileRegistry()
    reg.register(cfg.address, create_random_precompile(cfg, entropy=entropy, metrics=metrics))
    for address, contract in extra:
        reg.register(address, contract)
    return reg


__all__ = [
    "RESERVED_LIMIT",
    "is_reserved_address",
    "PrecompileRegistry",
    "default_registry",
]
