"""
prng_precompile.runtime.gasmeter — gas schedule and deterministic metering.

The cost of a call depends only on its declared shape (the input length),
never on hidden work:

    required_gas(input) = base + per_word * (len(input) // 32)

With the default schedule (base=1024, per_word=0) every call costs a flat
1024 gas. The schedule is part of the deployment's protocol.

Gas is charged *before* the payload is decoded, so oversized or malformed
payloads still pay for their size.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..errors import OutOfGas
from ..types import WORD


@dataclass(frozen=True)
class GasSchedule:
    base: int = 1024
    per_word: int = 0

    def __post_init__(self) -> None:
        _require_int_ge(self.base, 0, "base")
        _require_int_ge(self.per_word, 0, "per_word")

    def required_gas(self, input: bytes) -> int:
        """Gas required to attempt a call with this payload."""
        return self.base + self.per_word * (len(input) // WORD)

    @classmethod
    def from_config(cls, cfg) -> "GasSchedule":
        return cls(base=cfg.base_gas, per_word=cfg.gas_per_word)


def deduct_gas(supplied: int, cost: int) -> int:
    """Return `supplied - cost`; raise OutOfGas if `supplied < cost`."""
    _require_int_ge(supplied, 0, "supplied gas")
    _require_int_ge(cost, 0, "cost")
    if supplied < cost:
        raise OutOfGas(supplied, cost)
    return supplied - cost


class GasMeter:
    """
    Deterministic gas meter for one precompile call.

    Typical usage:
        gm = GasMeter(limit=supplied_gas)
        gm.consume(schedule.required_gas(input))
        return output, gm.remaining

    Notes:
    - `used` is monotonically non-decreasing.
    - `remaining` never goes below zero; OutOfGas is raised before that and
      the meter is left untouched.
    """

    __slots__ = ("_limit", "_used")

    def __init__(self, *, limit: int) -> None:
        self._limit = _require_int_ge(limit, 0, "limit")
        self._used = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> int:
        return self._limit - self._used

    def consume(self, amount: int) -> int:
        """Charge `amount` gas and return the remaining gas."""
        self._used = self._limit - deduct_gas(self.remaining, amount)
        return self.remaining

    def __repr__(self) -> str:  # pragma: no cover
        return f"GasMeter(limit={self._limit}, used={self._used})"


def _require_int_ge(v: int, lb: int, name: str) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be int, got {type(v).__name__}")
    if v < lb:
        raise ValueError(f"{name} must be >= {lb}, got {v}")
    return v


__all__ = ["GasSchedule", "GasMeter", "deduct_gas"]
