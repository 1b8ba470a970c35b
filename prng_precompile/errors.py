"""
prng_precompile.errors — typed failures of the random-value precompile.

Failures inside the precompile are raised as *typed exceptions* and converted
into a structured result at the dispatcher boundary, so the host VM always
receives them as the call's failure result and never as an uncaught fault.

Hierarchy
---------
PrecompileError (base)
 ├─ MissingSelector     : payload shorter than the 4-byte method identifier
 ├─ UnknownSelector     : method identifier matches no registered function
 ├─ InvalidInputLength  : payload shorter than the layout's fixed header
 ├─ ValueOverflow       : decoded count outside the generator's numeric domain
 ├─ RequestTooLarge     : decoded count above the configured ceiling
 ├─ OutOfGas            : supplied gas below the required gas
 ├─ WriteProtection     : state mutation attempted in a read-only context
 └─ EncodingFailure     : output could not be serialized (internal invariant)

RegistryError and ConfigError are setup-time errors; they never surface as a
call result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class PrecompileError(Exception):
    """
    Base precompile error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'OUT_OF_GAS').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "precompile error"
    code: str = "PRECOMPILE_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for receipts/logs/RPC errors."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class MissingSelector(PrecompileError):
    def __init__(self, length: int):
        super().__init__(
            message=f"function selector is missing (input length {length})",
            code="MISSING_SELECTOR",
            data={"length": length},
        )


class UnknownSelector(PrecompileError):
    def __init__(self, selector: bytes):
        super().__init__(
            message=f"invalid function selector 0x{selector.hex()}",
            code="UNKNOWN_SELECTOR",
            data={"selector": "0x" + selector.hex()},
        )


class InvalidInputLength(PrecompileError):
    """
    Payload length does not match the layout.

    `expected` is the required (or minimum, for the raw layout) length in bytes.
    """
    def __init__(self, got: int, expected: int, *, minimum: bool = False):
        rel = "at least " if minimum else ""
        super().__init__(
            message=f"invalid input length: got {got} bytes, expected {rel}{expected}",
            code="INVALID_INPUT_LENGTH",
            data={"got": got, "expected": expected, "minimum": minimum},
        )


class ValueOverflow(PrecompileError):
    def __init__(self, value: int, bits: int):
        super().__init__(
            message=f"n overflows uint{bits}",
            code="VALUE_OVERFLOW",
            data={"bits": bits, "value": hex(value)},
        )


class RequestTooLarge(PrecompileError):
    def __init__(self, n: int, ceiling: int):
        super().__init__(
            message=f"requested {n} values, ceiling is {ceiling}",
            code="REQUEST_TOO_LARGE",
            data={"n": n, "ceiling": ceiling},
        )


class OutOfGas(PrecompileError):
    """
    Supplied gas is below the required gas.

    Raised by the gas meter *before* any decoding or generation work.
    """
    def __init__(self, supplied: int, required: int):
        super().__init__(
            message="out of gas",
            code="OUT_OF_GAS",
            data={"supplied": supplied, "required": required},
        )


class WriteProtection(PrecompileError):
    def __init__(self, op: str):
        super().__init__(
            message=f"write protection: {op} is not allowed in a read-only call",
            code="WRITE_PROTECTION",
            data={"op": op},
        )


class EncodingFailure(PrecompileError):
    """Output could not be serialized; indicates a broken internal invariant."""
    def __init__(self, reason: str):
        super().__init__(
            message=f"encoding failure: {reason}",
            code="ENCODING_FAILURE",
            data={"reason": reason},
        )


class RegistryError(Exception):
    """Invalid precompile registration (reserved range, duplicates)."""


class ConfigError(ValueError):
    """Invalid deployment configuration."""


__all__ = [
    "PrecompileError",
    "MissingSelector",
    "UnknownSelector",
    "InvalidInputLength",
    "ValueOverflow",
    "RequestTooLarge",
    "OutOfGas",
    "WriteProtection",
    "EncodingFailure",
    "RegistryError",
    "ConfigError",
]
