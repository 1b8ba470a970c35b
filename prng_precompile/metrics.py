"""
Prometheus metrics for the random-value precompile.

Instruments
-----------
  • calls_total            — precompile invocations per outcome
  • values_generated       — number of values produced per successful call
  • gas_charged_total      — gas charged by the precompile

Label cardinality stays low: the only label is `outcome`, whose vocabulary is
the error-code set plus "ok".

Usage
-----
    from prng_precompile.metrics import METRICS

    METRICS.record_call("ok")
    METRICS.observe_values(3)
    METRICS.add_gas(1024)

Tests and embedders that need isolation construct their own `Metrics` with a
fresh `CollectorRegistry`.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram

_CALL_OUTCOMES = (
    "ok",
    "missing_selector",
    "unknown_selector",
    "invalid_input_length",
    "value_overflow",
    "request_too_large",
    "out_of_gas",
    "write_protection",
    "encoding_failure",
    "error",
)

# Values-per-call buckets: powers of two up to the default ceiling
_VALUES_BUCKETS = (0, 1, 2, 4, 8, 16, 32, 64, 128, 256, 512, 1024)


class Metrics:
    """
    Container for the precompile's Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "prng",
        subsystem: str = "precompile",
        registry=REGISTRY,
        values_buckets: Iterable[float] = _VALUES_BUCKETS,
    ) -> None:
        self.calls_total = Counter(
            "calls_total",
            "Number of precompile invocations, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.gas_charged_total = Counter(
            "gas_charged_total",
            "Gas charged by the precompile across all calls.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.values_generated = Histogram(
            "values_generated",
            "Number of 256-bit values produced per successful call.",
            buckets=tuple(values_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_call(self, outcome: str) -> None:
        """Increment the call counter; unknown outcomes fold into 'error'."""
        outcome = outcome.lower()
        if outcome not in _CALL_OUTCOMES:
            outcome = "error"
        self.calls_total.labels(outcome=outcome).inc()

    def observe_values(self, n: int) -> None:
        self.values_generated.observe(float(n))

    def add_gas(self, amount: int) -> None:
        if amount > 0:
            self.gas_charged_total.inc(amount)


METRICS = Metrics()

__all__ = ["Metrics", "METRICS"]
