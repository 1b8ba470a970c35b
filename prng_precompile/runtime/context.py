"""
prng_precompile.runtime.context — per-call context handed to the precompile.

These lightweight environments carry only pure data (ints/bytes) and perform
strict validation on construction.

Design notes
------------
- Addresses are 20 raw bytes. Hex strings (with or without "0x") are accepted
  by helpers and normalized to bytes.
- All numeric fields are validated to be non-negative.
- Nothing here exposes wall-clock time; `BlockEnv.timestamp` is the consensus
  timestamp supplied by the host.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union

from ..types import ADDRESS_LEN
from .state import StateDB


class ContextError(ValueError):
    """Validation or coercion failure for call contexts."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def to_address(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Coerce to a 20-byte address; short hex strings are left-padded."""
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) > 2 * ADDRESS_LEN:
            raise ContextError(f"address too long: {value!r}")
        value = h.rjust(2 * ADDRESS_LEN, "0")
    b = to_bytes(value)
    if len(b) != ADDRESS_LEN:
        raise ContextError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    return b


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic per-block environment.

    Fields
    ------
    number:     Block number.
    timestamp:  Consensus timestamp.
    coinbase:   Block producer address (20 bytes).
    chain_id:   Integer chain identifier.
    """
    number: int
    timestamp: int
    coinbase: bytes
    chain_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "number", _require_non_negative_int("number", self.number))
        object.__setattr__(self, "timestamp", _require_non_negative_int("timestamp", self.timestamp))
        object.__setattr__(self, "chain_id", _require_non_negative_int("chain_id", self.chain_id))
        object.__setattr__(self, "coinbase", to_address(self.coinbase))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BlockEnv":
        return cls(
            number=d.get("number", 0),
            timestamp=d.get("timestamp", 0),
            coinbase=d.get("coinbase", b"\x00" * ADDRESS_LEN),
            chain_id=d.get("chain_id", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["coinbase"] = to_hex(self.coinbase)
        return d


@dataclass(frozen=True)
class CallContext:
    """
    One invocation of the precompile.

    Fields
    ------
    caller:       Calling account (20 bytes).
    address:      Address the precompile was invoked at (20 bytes).
    input:        Raw call data.
    supplied_gas: Gas made available to the call.
    read_only:    True for static calls; state mutation is forbidden.
    """
    caller: bytes
    address: bytes
    input: bytes
    supplied_gas: int
    read_only: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", to_address(self.caller))
        object.__setattr__(self, "address", to_address(self.address))
        object.__setattr__(self, "input", to_bytes(self.input))
        object.__setattr__(self, "supplied_gas", _require_non_negative_int("supplied_gas", self.supplied_gas))
        object.__setattr__(self, "read_only", bool(self.read_only))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caller": to_hex(self.caller),
            "address": to_hex(self.address),
            "input": to_hex(self.input),
            "supplied_gas": self.supplied_gas,
            "read_only": self.read_only,
        }


@dataclass
class AccessibleState:
    """What the host exposes to a stateful precompile."""
    state_db: StateDB
    block_env: Optional[BlockEnv] = None

    def get_state_db(self) -> StateDB:
        return self.state_db

    def get_block_env(self) -> Optional[BlockEnv]:
        return self.block_env


__all__ = [
    "ContextError",
    "to_bytes",
    "to_hex",
    "to_address",
    "BlockEnv",
    "CallContext",
    "AccessibleState",
]
