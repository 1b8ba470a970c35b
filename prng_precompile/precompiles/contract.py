"""
prng_precompile.precompiles.contract — stateful precompile dispatch.

A `StatefulPrecompiledContract` is what the host VM invokes at a reserved
address. Per call it runs one synchronous state machine:

    Start → GasMetered → Decoded → Generated → Encoded → Returned
      └──────────────── any step ───────────────→ Failed(kind)

Routing
-------
- Typed layout: the first 4 bytes select a registered function. Payloads
  shorter than 4 bytes (MissingSelector) or with an unregistered selector
  (UnknownSelector) are refused before metering, so the full supplied gas is
  handed back.
- Raw layout: there are no selectors; the whole payload goes to the single
  fallback function.

Gas and failures
----------------
Functions charge through the call's `GasMeter` before decoding anything.
On failure the output is empty and:
  - OutOfGas                      → remaining gas 0
  - any failure after metering    → remaining gas = supplied - charged
Every state change made during a failed call is reverted to the snapshot
taken at call start. A successful call keeps its changes and releases the
snapshot through `discard_snapshot` when the state implements it; otherwise
the host owns the snapshot lifecycle.

Errors derived from PrecompileError are returned inside `PrecompileResult`;
they never escape `run()`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from ..abi.decoding import split_selector
from ..errors import OutOfGas, PrecompileError, UnknownSelector
from ..metrics import METRICS, Metrics
from ..runtime.context import AccessibleState, CallContext
from ..runtime.gasmeter import GasMeter
from ..runtime.state import StateDB, guard

log = logging.getLogger(__name__)


@dataclass
class PrecompileCall:
    """Everything a precompile function may touch during one call."""
    accessible_state: AccessibleState
    context: CallContext
    args: bytes
    gas: GasMeter

    @property
    def caller(self) -> bytes:
        return self.context.caller

    @property
    def address(self) -> bytes:
        return self.context.address

    @property
    def input(self) -> bytes:
        return self.context.input

    @property
    def state_db(self) -> StateDB:
        """State view honouring the call's read-only flag."""
        return guard(self.accessible_state.get_state_db(), self.context.read_only)


PrecompileFn = Callable[[PrecompileCall], bytes]


@dataclass(frozen=True)
class PrecompileResult:
    output: bytes
    remaining_gas: int
    error: Optional[PrecompileError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.ok,
            "output": "0x" + self.output.hex(),
            "remainingGas": self.remaining_gas,
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out


@dataclass(frozen=True)
class StatefulPrecompileFunction:
    selector: bytes
    fn: PrecompileFn
    name: str = ""

    def __post_init__(self) -> None:
        if len(self.selector) != 4:
            raise ValueError(f"selector must be 4 bytes, got {len(self.selector)}")


@dataclass
class StatefulPrecompiledContract:
    """
    Routes calls to registered functions by selector, or to `fallback` when
    the contract speaks the selector-less raw layout.
    """

    functions: Iterable[StatefulPrecompileFunction] = ()
    fallback: Optional[PrecompileFn] = None
    metrics: Metrics = field(default=METRICS)
    _by_selector: Dict[bytes, StatefulPrecompileFunction] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        table: Dict[bytes, StatefulPrecompileFunction] = {}
        for f in self.functions:
            if f.selector in table:
                raise ValueError(f"duplicate selector 0x{f.selector.hex()}")
            table[f.selector] = f
        if not table and self.fallback is None:
            raise ValueError("contract needs at least one function or a fallback")
        self._by_selector = table

    @property
    def selectors(self) -> tuple:
        return tuple(self._by_selector)

    def _route(self, input: bytes) -> tuple:
        if self.fallback is not None and not self._by_selector:
            return self.fallback, input, "fallback"
        selector, args = split_selector(input)
        f = self._by_selector.get(selector)
        if f is None:
            raise UnknownSelector(selector)
        return f.fn, args, f.name

    def run(
        self,
        accessible_state: AccessibleState,
        caller: bytes,
        address: bytes,
        input: bytes,
        supplied_gas: int,
        read_only: bool = False,
    ) -> PrecompileResult:
        ctx = CallContext(
            caller=caller,
            address=address,
            input=input,
            supplied_gas=supplied_gas,
            read_only=read_only,
        )
        gas = GasMeter(limit=ctx.supplied_gas)
        state_db = accessible_state.get_state_db()
        snap = state_db.snapshot()

        try:
            fn, args, name = self._route(ctx.input)
            output = fn(PrecompileCall(accessible_state, ctx, args, gas))
        except PrecompileError as err:
            state_db.revert_to_snapshot(snap)
            remaining = 0 if isinstance(err, OutOfGas) else gas.remaining
            self.metrics.record_call(err.code)
            self.metrics.add_gas(ctx.supplied_gas - remaining)
            log.debug(
                "precompile_failed",
                extra={"code": err.code, "remaining_gas": remaining, "caller": "0x" + ctx.caller.hex()},
            )
            return PrecompileResult(output=b"", remaining_gas=remaining, error=err)
        except Exception:
            state_db.revert_to_snapshot(snap)
            raise

        _discard(state_db, snap)
        self.metrics.record_call("ok")
        self.metrics.add_gas(gas.used)
        log.debug(
            "precompile_returned",
            extra={"function": name, "gas_used": gas.used, "output_len": len(output)},
        )
        return PrecompileResult(output=output, remaining_gas=gas.remaining)


def _discard(state_db: StateDB, snapshot_id: int) -> None:
    release = getattr(state_db, "discard_snapshot", None)
    if callable(release):
        release(snapshot_id)


__all__ = [
    "PrecompileCall",
    "PrecompileFn",
    "PrecompileResult",
    "StatefulPrecompileFunction",
    "StatefulPrecompiledContract",
]
