"""
boundrand: uniform u64 integers from inclusive ranges, backed by OS entropy.

    from boundrand import rand_u64

    die = rand_u64(1, 6)

Failures are typed: `InvalidRange` for bad bounds (caller error) and
`EntropyUnavailable` when the entropy source fails (environmental).

Only light, stable exports are surfaced here.
"""

from __future__ import annotations

from .core import BoundedRandom, fold_entropy, rand_u64, rand_u64_async, reduce_into_range
from .errors import BoundRandError, EntropyUnavailable, InvalidRange
from .version import __version__

__all__ = [
    "__version__",
    "BoundedRandom",
    "rand_u64",
    "rand_u64_async",
    "fold_entropy",
    "reduce_into_range",
    "BoundRandError",
    "InvalidRange",
    "EntropyUnavailable",
]
