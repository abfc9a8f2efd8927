"""
Prometheus metrics for bounded draws.

Instruments:
  • draws_total           : bounded draws per outcome
  • entropy_fetch_seconds : time spent waiting on the entropy source
  • pool_reseeds_total    : entropy pool re-seeds

Nothing here is wired in by default: a `BoundedRandom` records metrics only
when constructed with a `Metrics` instance, so the plain draw path has no
side effects beyond the entropy read.

Usage
-----
    from boundrand import BoundedRandom
    from boundrand.metrics import METRICS

    rng = BoundedRandom(metrics=METRICS)
    rng.next(1, 6)

Tests and embedders that need isolation construct their own `Metrics` with a
private `CollectorRegistry`. `metrics_for(namespace)` hands out one shared
instance per (namespace, registry) pair, since Prometheus refuses to register
the same metric names twice.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Iterable, Tuple

from prometheus_client import Counter, Histogram, REGISTRY


# Kept small for bounded label cardinality.
_DRAW_OUTCOMES = (
    "ok",
    "invalid_range",
    "entropy_unavailable",
)

# Entropy fetch latency buckets (seconds): a getrandom call is microseconds,
# a slow hardware device can take much longer.
_FETCH_BUCKETS = (
    0.00001, 0.00005, 0.0001, 0.0005,
    0.001, 0.005, 0.01, 0.05,
    0.1, 0.5, 1.0,
)


class Metrics:
    """
    Container for the boundrand Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "boundrand",
        subsystem: str = "rng",
        registry = REGISTRY,
        fetch_buckets: Iterable[float] = _FETCH_BUCKETS,
    ) -> None:
        self.draws_total = Counter(
            "draws_total",
            "Number of bounded draws, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.pool_reseeds_total = Counter(
            "pool_reseeds_total",
            "Number of times an entropy pool mixed in fresh upstream bytes.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.entropy_fetch_seconds = Histogram(
            "entropy_fetch_seconds",
            "Time spent fetching bytes from the entropy source (seconds).",
            buckets=tuple(fetch_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_draw(self, outcome: str) -> None:
        """
        Increment the draw counter for an outcome in _DRAW_OUTCOMES.

        Raises:
            ValueError: unknown outcome.
        """
        if outcome not in _DRAW_OUTCOMES:
            raise ValueError(
                f"unknown draw outcome {outcome!r}; expected one of {_DRAW_OUTCOMES}"
            )
        self.draws_total.labels(outcome=outcome).inc()

    def record_reseed(self) -> None:
        self.pool_reseeds_total.inc()

    def observe_fetch(self, seconds: float) -> None:
        self.entropy_fetch_seconds.observe(float(seconds))

    @contextmanager
    def fetch_timer(self):
        """
        Time an entropy fetch block. Failed fetches are timed as well.

            with metrics.fetch_timer():
                buf = source.random_bytes(32)
        """
        start = perf_counter()
        try:
            yield
        finally:
            self.observe_fetch(perf_counter() - start)


# Shared instance for callers that want the default registry.
METRICS = Metrics()

_SHARED: Dict[Tuple[str, object], Metrics] = {("boundrand", REGISTRY): METRICS}
_SHARED_LOCK = threading.Lock()


def metrics_for(namespace: str = "boundrand", registry=REGISTRY) -> Metrics:
    """
    Return the `Metrics` registered under `namespace` in `registry`,
    creating it on first use. Repeated calls return the same instance.
    """
    key = (namespace, registry)
    with _SHARED_LOCK:
        metrics = _SHARED.get(key)
        if metrics is None:
            metrics = Metrics(namespace=namespace, registry=registry)
            _SHARED[key] = metrics
        return metrics


__all__ = [
    "Metrics",
    "METRICS",
    "metrics_for",
]
