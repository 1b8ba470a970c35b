"""
prng_precompile.config — deployment parameters for the random precompile.

This module centralizes the knobs a chain configuration fixes for the
precompile. Everything here is part of the deployment's protocol: changing
the gas schedule, the layout or the nonce source after launch is a breaking
change.

Configuration precedence:
  1) Environment variables (PRNG_PRECOMPILE_*)
  2) Hardcoded defaults below

Key env vars:
  - PRNG_PRECOMPILE_LAYOUT         (str)  default: typed   (typed | raw)
  - PRNG_PRECOMPILE_NONCE_SOURCE   (str)  default: state for typed, payload for raw
  - PRNG_PRECOMPILE_ADDRESS        (hex)  default: 0x0000000000000000000000000000000000069420
  - PRNG_PRECOMPILE_BASE_GAS       (int)  default: 1024
  - PRNG_PRECOMPILE_GAS_PER_WORD   (int)  default: 0
  - PRNG_PRECOMPILE_MAX_COUNT      (int)  default: 1024

Usage:
    from prng_precompile.config import load_config
    CFG = load_config()
    if CFG.layout == "raw": ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict, Optional

from .errors import ConfigError

LAYOUT_TYPED = "typed"
LAYOUT_RAW = "raw"
LAYOUTS = (LAYOUT_TYPED, LAYOUT_RAW)

NONCE_FROM_STATE = "state"
NONCE_FROM_PAYLOAD = "payload"
NONCE_SOURCES = (NONCE_FROM_STATE, NONCE_FROM_PAYLOAD)

DEFAULT_ADDRESS = "0x0000000000000000000000000000000000069420"
DEFAULT_BASE_GAS = 1024
DEFAULT_GAS_PER_WORD = 0
DEFAULT_MAX_COUNT = 1024


# ----------------------------- helpers ---------------------------------------


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    return raw or None


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def parse_address(value: Any) -> bytes:
    """Parse a 20-byte address from bytes or a 0x-hex string."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        b = bytes(value)
    elif isinstance(value, str):
        h = value.strip()
        h = h[2:] if h.startswith(("0x", "0X")) else h
        try:
            b = bytes.fromhex(h.rjust(40, "0"))
        except ValueError as e:
            raise ConfigError(f"invalid address {value!r}") from e
    else:
        raise ConfigError(f"cannot parse address from {type(value).__name__}")
    if len(b) != 20:
        raise ConfigError(f"address must be 20 bytes, got {len(b)}")
    return b


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class PrecompileConfig:
    # Call-payload layout (typed selector+ABI, or raw composite)
    layout: str = LAYOUT_TYPED
    # Where the generator's nonce comes from
    nonce_source: str = NONCE_FROM_STATE
    # Reserved precompile address (20 bytes)
    address: bytes = parse_address(DEFAULT_ADDRESS)

    # Gas schedule: base + per_word * (len(input) // 32)
    base_gas: int = DEFAULT_BASE_GAS
    gas_per_word: int = DEFAULT_GAS_PER_WORD

    # Safety ceiling on values produced by a single call
    max_count: int = DEFAULT_MAX_COUNT

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ConfigError(f"layout must be one of {LAYOUTS}, got {self.layout!r}")
        if self.nonce_source not in NONCE_SOURCES:
            raise ConfigError(
                f"nonce_source must be one of {NONCE_SOURCES}, got {self.nonce_source!r}"
            )
        if self.layout == LAYOUT_TYPED and self.nonce_source == NONCE_FROM_PAYLOAD:
            raise ConfigError("typed layout carries no nonce; use nonce_source='state'")
        object.__setattr__(self, "address", parse_address(self.address))
        if self.base_gas < 0 or self.gas_per_word < 0:
            raise ConfigError("gas schedule values must be non-negative")
        if self.max_count < 0:
            raise ConfigError("max_count must be non-negative")

    def with_overrides(self, **changes: Any) -> "PrecompileConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "layout": self.layout,
            "nonce_source": self.nonce_source,
            "address": "0x" + self.address.hex(),
            "base_gas": self.base_gas,
            "gas_per_word": self.gas_per_word,
            "max_count": self.max_count,
        }


@lru_cache(maxsize=1)
def load_config() -> PrecompileConfig:
    """
    Build and cache a PrecompileConfig from environment + defaults.
    """
    layout = _env_str("PRNG_PRECOMPILE_LAYOUT") or LAYOUT_TYPED
    default_nonce = NONCE_FROM_PAYLOAD if layout == LAYOUT_RAW else NONCE_FROM_STATE
    nonce_source = _env_str("PRNG_PRECOMPILE_NONCE_SOURCE") or default_nonce

    return PrecompileConfig(
        layout=layout,
        nonce_source=nonce_source,
        address=parse_address(os.getenv("PRNG_PRECOMPILE_ADDRESS", DEFAULT_ADDRESS)),
        base_gas=_env_int("PRNG_PRECOMPILE_BASE_GAS", DEFAULT_BASE_GAS, min_v=0, max_v=10_000_000),
        gas_per_word=_env_int("PRNG_PRECOMPILE_GAS_PER_WORD", DEFAULT_GAS_PER_WORD, min_v=0, max_v=1_000_000),
        max_count=_env_int("PRNG_PRECOMPILE_MAX_COUNT", DEFAULT_MAX_COUNT, min_v=0, max_v=1 << 20),
    )


__all__ = [
    "LAYOUT_TYPED",
    "LAYOUT_RAW",
    "NONCE_FROM_STATE",
    "NONCE_FROM_PAYLOAD",
    "DEFAULT_ADDRESS",
    "PrecompileConfig",
    "parse_address",
    "load_config",
]
