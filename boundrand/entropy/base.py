"""
boundrand.entropy.base
======================

The one-operation protocol every entropy source implements:

    def random_bytes(self, n: int) -> bytes

Implementations return exactly `n` bytes or raise
:class:`boundrand.errors.EntropyUnavailable`. They never retry internally and
never fall back to a weaker source.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EntropySource(Protocol):
    """Minimal secure-entropy source protocol."""

    def random_bytes(self, n: int) -> bytes:  # pragma: no cover - protocol
        """Return exactly n bytes of entropy, or raise EntropyUnavailable."""
        ...


def check_request(n: int) -> None:
    """Reject byte counts no source can honour."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError("n must be an int")
    if n < 0:
        raise ValueError("n must be non-negative")


__all__ = ["EntropySource", "check_request"]
