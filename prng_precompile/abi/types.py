"""
ABI descriptors for the random precompile.

The typed calling convention follows the EVM ABI: a function is identified by
the first four bytes of keccak256 over its canonical signature, and every
static argument occupies one 32-byte big-endian word.

Only the types the precompile actually speaks are supported: `uint256`,
`uint256[]` and `address`. Anything else in an ABI document is rejected.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from ..runtime.hash_api import function_selector

__all__ = [
    "ABITypeError",
    "ValidationError",
    "SUPPORTED_TYPES",
    "FunctionABI",
    "parse_abi",
    "coerce_uint",
    "RANDOM_NCSPRNG_ABI",
    "RANDOM_PRNG_ABI",
]


class ABITypeError(TypeError):
    """Raised when an ABI type string is malformed or unsupported."""


class ValidationError(ValueError):
    """Raised when a Python value does not conform to an ABI type."""


SUPPORTED_TYPES = ("uint256", "uint256[]", "address")


@dataclass(frozen=True)
class FunctionABI:
    """
    One ABI function entry.

    `inputs` and `outputs` hold canonical type strings in declaration order.
    """
    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    state_mutability: str = "view"

    def __post_init__(self) -> None:
        for t in (*self.inputs, *self.outputs):
            if t not in SUPPORTED_TYPES:
                raise ABITypeError(f"unsupported ABI type {t!r} in {self.name}")

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "FunctionABI":
        if d.get("type", "function") != "function":
            raise ABITypeError(f"not a function entry: {d.get('type')!r}")
        name = d.get("name")
        if not isinstance(name, str) or not name:
            raise ABITypeError("function entry without a name")
        return cls(
            name=name,
            inputs=tuple(p["type"] for p in d.get("inputs", [])),
            outputs=tuple(p["type"] for p in d.get("outputs", [])),
            state_mutability=d.get("stateMutability", "nonpayable"),
        )


def parse_abi(abi_json: str) -> Dict[str, FunctionABI]:
    """Parse a JSON ABI document into {function name: FunctionABI}."""
    try:
        entries = json.loads(abi_json)
    except json.JSONDecodeError as e:
        raise ABITypeError(f"invalid ABI JSON: {e}") from e
    if not isinstance(entries, list):
        raise ABITypeError("ABI document must be a JSON list")
    out: Dict[str, FunctionABI] = {}
    for entry in entries:
        fn = FunctionABI.from_dict(entry)
        out[fn.name] = fn
    return out


def coerce_uint(value: Any, *, bits: int = 256) -> int:
    """Accept int (non-bool) or 0x-hex string, bounded to `bits`."""
    if isinstance(value, bool):
        raise ValidationError("bool is not a uint")
    if isinstance(value, str):
        s = value.strip()
        if not s.startswith(("0x", "0X")):
            raise ValidationError("uint strings must be 0x-prefixed hex")
        value = int(s, 16)
    if not isinstance(value, int):
        raise ValidationError(f"uint{bits} must be int, got {type(value).__name__}")
    if value < 0 or value.bit_length() > bits:
        raise ValidationError(f"value out of range for uint{bits}")
    return value


RANDOM_ABI_JSON = """[
  {
    "type": "function",
    "name": "randomNCSPRNG",
    "inputs": [
      {"name": "n", "type": "uint256", "internalType": "uint256"}
    ],
    "outputs": [
      {"name": "randomValues", "type": "uint256[]", "internalType": "uint256[]"}
    ],
    "stateMutability": "view"
  },
  {
    "type": "function",
    "name": "randomPRNG",
    "inputs": [],
    "outputs": [
      {"name": "randomValue", "type": "uint256", "internalType": "uint256"}
    ],
    "stateMutability": "view"
  }
]"""

_RANDOM_ABI = parse_abi(RANDOM_ABI_JSON)
RANDOM_NCSPRNG_ABI = _RANDOM_ABI["randomNCSPRNG"]
RANDOM_PRNG_ABI = _RANDOM_ABI["randomPRNG"]
