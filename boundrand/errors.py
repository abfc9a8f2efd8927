"""
boundrand errors.

A small, typed hierarchy of exceptions raised by bounded draws. Callers can
catch the base `BoundRandError` to handle every failure, or branch on the
concrete subclasses:

- `InvalidRange`       caller-input error; fix the call site.
- `EntropyUnavailable` environmental failure; retry later or alert an operator.

Both also derive from the matching builtin (`ValueError`, `RuntimeError`) so
generic handlers keep working.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class BoundRandError(Exception):
    """Base class for all boundrand errors."""
    pass


@dataclass(eq=False)
class InvalidRange(BoundRandError, ValueError):
    """
    Raised when a requested range cannot be sampled. No entropy is consumed.

    Attributes:
        lower_bound: The requested inclusive lower bound.
        upper_bound: The requested inclusive upper bound.
        message: Human-readable statement of the violated constraint.
    """
    lower_bound: int
    upper_bound: int
    message: str = "upper_bound should be >= lower_bound"

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class EntropyUnavailable(BoundRandError, RuntimeError):
    """
    Raised when an entropy source cannot supply the requested bytes.

    Attributes:
        message: What the caller was trying to do.
        source: Short name of the failing source (e.g. "os", "file:/dev/hwrng").
        cause: The underlying exception, if any. Also chained as `__cause__`
            when raised with ``raise ... from cause``.
    """
    message: str
    source: str = "os"
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


__all__ = [
    "BoundRandError",
    "InvalidRange",
    "EntropyUnavailable",
]
