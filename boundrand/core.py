"""
boundrand.core
==============

Uniform unsigned 64-bit integers from an inclusive range, with entropy from
the operating system.

A draw is four steps:

1. validate the bounds (no entropy is touched on failure),
2. fetch `ENTROPY_BUFFER_LEN` (32) bytes from the entropy source,
3. fold the first 31 bytes into a 64-bit value with wrapping arithmetic
   (``acc = acc * 255 + byte`` mod 2**64; byte 31 is read but not folded),
4. reduce: ``full % (upper - lower + 1) + lower``.

Python integers do not overflow, so the full range ``[0, 2**64 - 1]`` needs
no special case: the modulus is 2**64 and the folded value is returned as-is.

API
---
- BoundedRandom(source=None, *, metrics=None).next(lower, upper) -> int
- BoundedRandom.next_async(lower, upper) -> Awaitable[int]
- rand_u64(lower, upper, *, source=None) -> int
- rand_u64_async(lower, upper, *, source=None) -> Awaitable[int]
- fold_entropy(buf) -> int
- reduce_into_range(full, lower, upper) -> int
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from .constants import ENTROPY_BUFFER_LEN, FOLD_BYTES, FOLD_MULTIPLIER, U64_MASK, U64_MAX
from .errors import EntropyUnavailable, InvalidRange
from .entropy import EntropySource, OSEntropy, source_from_config

if TYPE_CHECKING:  # pragma: no cover
    from .config import BoundRandConfig
    from .metrics import Metrics


# -----------------------------------------------------------------------------#
# Pure helpers
# -----------------------------------------------------------------------------#


def _check_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")


def validate_bounds(lower_bound: int, upper_bound: int) -> None:
    """
    Check that `[lower_bound, upper_bound]` is a non-empty u64 range.

    Raises:
        TypeError: a bound is not an int.
        InvalidRange: a bound is outside u64, or lower_bound > upper_bound.
    """
    _check_int("lower_bound", lower_bound)
    _check_int("upper_bound", upper_bound)
    for name, value in (("lower_bound", lower_bound), ("upper_bound", upper_bound)):
        if value < 0 or value > U64_MAX:
            raise InvalidRange(
                lower_bound, upper_bound, f"{name} must be within [0, 2**64 - 1]"
            )
    if lower_bound > upper_bound:
        raise InvalidRange(lower_bound, upper_bound)


def fold_entropy(buf: bytes) -> int:
    """
    Fold a 32-byte entropy buffer into a 64-bit integer.

    Starting from zero, each of bytes 0..30 is absorbed as
    ``acc = acc * 255 + byte`` with wrapping (mod 2**64) arithmetic; the
    multiply is skipped for byte 0. The final byte does not contribute.
    """
    if len(buf) != ENTROPY_BUFFER_LEN:
        raise ValueError(f"expected {ENTROPY_BUFFER_LEN} bytes, got {len(buf)}")
    acc = 0
    for i in range(FOLD_BYTES):
        if i > 0:
            acc = (acc * FOLD_MULTIPLIER) & U64_MASK
        acc = (acc + buf[i]) & U64_MASK
    return acc


def reduce_into_range(full_range_value: int, lower_bound: int, upper_bound: int) -> int:
    """Map a folded 64-bit value into ``[lower_bound, upper_bound]``."""
    width = upper_bound - lower_bound
    return full_range_value % (width + 1) + lower_bound


# -----------------------------------------------------------------------------#
# Generator
# -----------------------------------------------------------------------------#


class BoundedRandom:
    """
    Draws uniform integers from inclusive u64 ranges.

    Instances hold no mutable state of their own; a single instance may be
    shared between threads as long as its source is thread-safe (all sources
    in `boundrand.entropy` are).

    Args:
        source: Entropy source; defaults to :class:`OSEntropy`.
        metrics: Optional :class:`boundrand.metrics.Metrics`. When None, a
            draw has no side effect other than the entropy read.
    """

    def __init__(
        self,
        source: Optional[EntropySource] = None,
        *,
        metrics: Optional["Metrics"] = None,
    ) -> None:
        self._source: EntropySource = source if source is not None else OSEntropy()
        self._metrics = metrics

    @classmethod
    def from_config(cls, cfg: "BoundRandConfig", *, registry=None) -> "BoundedRandom":
        """
        Build a generator from configuration. With metrics enabled, every
        generator built for the same namespace and registry shares one
        `Metrics` instance (the default registry unless `registry` is given).
        """
        metrics = None
        if cfg.metrics_enabled:
            from prometheus_client import REGISTRY

            from .metrics import metrics_for

            metrics = metrics_for(
                cfg.metrics_namespace, registry if registry is not None else REGISTRY
            )
        on_reseed = metrics.record_reseed if metrics is not None else None
        return cls(source_from_config(cfg, on_reseed=on_reseed), metrics=metrics)

    @property
    def source(self) -> EntropySource:
        return self._source

    def _record(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_draw(outcome)

    def _validate(self, lower_bound: int, upper_bound: int) -> None:
        try:
            validate_bounds(lower_bound, upper_bound)
        except InvalidRange:
            self._record("invalid_range")
            raise

    def _fetch(self) -> bytes:
        """
        Read one entropy buffer.

        Any source failure is re-raised as "unable to call getrandom for seed
        entropy", whichever source is configured; `EntropyUnavailable.source`
        and the chained cause name the real origin (file path, pool, OS).
        """
        try:
            if self._metrics is None:
                buf = self._source.random_bytes(ENTROPY_BUFFER_LEN)
            else:
                with self._metrics.fetch_timer():
                    buf = self._source.random_bytes(ENTROPY_BUFFER_LEN)
        except (EntropyUnavailable, OSError) as e:
            self._record("entropy_unavailable")
            raise EntropyUnavailable(
                "unable to call getrandom for seed entropy",
                source=getattr(self._source, "name", type(self._source).__name__),
                cause=e,
            ) from e
        if len(buf) != ENTROPY_BUFFER_LEN:
            self._record("entropy_unavailable")
            raise EntropyUnavailable(
                f"entropy source returned {len(buf)} bytes, expected {ENTROPY_BUFFER_LEN}",
                source=getattr(self._source, "name", type(self._source).__name__),
            )
        return buf

    def _finish(self, buf: bytes, lower_bound: int, upper_bound: int) -> int:
        value = reduce_into_range(fold_entropy(buf), lower_bound, upper_bound)
        self._record("ok")
        return value

    def next(self, lower_bound: int, upper_bound: int) -> int:
        """
        Return a uniformly distributed integer in ``[lower_bound, upper_bound]``.

        Raises:
            InvalidRange: bounds outside u64 or lower_bound > upper_bound.
            EntropyUnavailable: the entropy source failed; the original error
                is chained as ``__cause__``.
        """
        self._validate(lower_bound, upper_bound)
        return self._finish(self._fetch(), lower_bound, upper_bound)

    async def next_async(self, lower_bound: int, upper_bound: int) -> int:
        """Awaitable `next`; the entropy fetch runs in a worker thread."""
        self._validate(lower_bound, upper_bound)
        buf = await asyncio.to_thread(self._fetch)
        return self._finish(buf, lower_bound, upper_bound)

    def __repr__(self) -> str:
        return f"BoundedRandom(source={self._source!r})"


def rand_u64(
    lower_bound: int, upper_bound: int, *, source: Optional[EntropySource] = None
) -> int:
    """One-shot draw from ``[lower_bound, upper_bound]``."""
    return BoundedRandom(source).next(lower_bound, upper_bound)


async def rand_u64_async(
    lower_bound: int, upper_bound: int, *, source: Optional[EntropySource] = None
) -> int:
    """Awaitable one-shot draw from ``[lower_bound, upper_bound]``."""
    return await BoundedRandom(source).next_async(lower_bound, upper_bound)


__all__ = [
    "BoundedRandom",
    "rand_u64",
    "rand_u64_async",
    "fold_entropy",
    "reduce_into_range",
    "validate_bounds",
]
