"""
boundrand.entropy.pool
======================

Seeded-once, hash-ratcheted entropy cache.

Instead of asking the OS for every draw, the pool pulls `POOL_SEED_LEN` bytes
from an upstream source once, then serves requests from a 32-byte state:

    output_i = SHA3-256(DOMAIN_OUTPUT || state || counter || block_i) ...
    state'   = SHA3-256(DOMAIN_RATCHET || state)

The state is ratcheted after every request, so a captured state does not
reveal earlier outputs. Fresh upstream bytes are hashed into the state after
`reseed_after_draws` requests or `reseed_interval_s` seconds, whichever comes
first, which also limits the damage from a weak or compromised OS generator
at any single point in time.

The pool is opt-in. `BoundedRandom` reads the OS directly unless a pool is
passed as its source. Range reduction never depends on which source is used.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from hashlib import sha3_256
from typing import Callable, Optional

from ..constants import (
    DEFAULT_POOL_RESEED_AFTER_DRAWS,
    DEFAULT_POOL_RESEED_INTERVAL_S,
    DOMAIN_OUTPUT,
    DOMAIN_RATCHET,
    DOMAIN_RESEED,
    DOMAIN_SEED,
    POOL_SEED_LEN,
)
from ..errors import EntropyUnavailable
from .base import EntropySource, check_request
from .system import OSEntropy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time view of a pool's bookkeeping."""
    seeded: bool
    draws: int
    reseeds: int
    bytes_out: int


def _expand(state: bytes, counter: int, n: int) -> bytes:
    prefix = DOMAIN_OUTPUT + state + counter.to_bytes(8, "big")
    out = bytearray()
    block = 0
    while len(out) < n:
        out.extend(sha3_256(prefix + block.to_bytes(4, "big")).digest())
        block += 1
    return bytes(out[:n])


def _ratchet(state: bytes) -> bytes:
    return sha3_256(DOMAIN_RATCHET + state).digest()


class EntropyPool(EntropySource):
    """
    Thread-safe entropy cache with an explicit re-seed policy.

    Args:
        upstream: Source used for seeding; defaults to :class:`OSEntropy`.
        reseed_after_draws: Re-seed once this many requests were served.
        reseed_interval_s: Re-seed once this many seconds passed since the
            last (re)seed.
        clock: Monotonic time function, injectable for tests.
        on_reseed: Called (under the pool lock) after each re-seed, not
            after the initial seed.
    """

    name = "pool"

    def __init__(
        self,
        upstream: Optional[EntropySource] = None,
        *,
        reseed_after_draws: int = DEFAULT_POOL_RESEED_AFTER_DRAWS,
        reseed_interval_s: float = DEFAULT_POOL_RESEED_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        on_reseed: Optional[Callable[[], None]] = None,
    ) -> None:
        if reseed_after_draws <= 0:
            raise ValueError("reseed_after_draws must be > 0")
        if reseed_interval_s <= 0:
            raise ValueError("reseed_interval_s must be > 0")
        self._upstream = upstream if upstream is not None else OSEntropy()
        self._reseed_after = reseed_after_draws
        self._reseed_interval = float(reseed_interval_s)
        self._clock = clock
        self._on_reseed = on_reseed
        self._lock = threading.Lock()

        self._state: Optional[bytes] = None
        self._counter = 0
        self._since_seed = 0
        self._seeded_at = 0.0

        self._draws = 0
        self._reseeds = 0
        self._bytes_out = 0

    # ----- seeding -----------------------------------------------------------

    def _pull_upstream(self) -> bytes:
        fresh = self._upstream.random_bytes(POOL_SEED_LEN)
        if len(fresh) != POOL_SEED_LEN:
            raise EntropyUnavailable(
                f"upstream returned {len(fresh)} bytes, expected {POOL_SEED_LEN}",
                source=self.name,
            )
        return fresh

    def _seed_locked(self) -> None:
        fresh = self._pull_upstream()
        if self._state is None:
            self._state = sha3_256(DOMAIN_SEED + fresh).digest()
            logger.debug("entropy pool seeded from %r", self._upstream)
        else:
            self._state = sha3_256(DOMAIN_RESEED + self._state + fresh).digest()
            self._reseeds += 1
            logger.debug(
                "entropy pool reseeded (reseeds=%d, draws=%d)",
                self._reseeds,
                self._draws,
            )
            if self._on_reseed is not None:
                self._on_reseed()
        self._since_seed = 0
        self._seeded_at = self._clock()

    def _reseed_due_locked(self) -> bool:
        if self._since_seed >= self._reseed_after:
            return True
        return (self._clock() - self._seeded_at) >= self._reseed_interval

    def reseed(self) -> None:
        """Mix fresh upstream bytes into the state now (seeding if needed)."""
        with self._lock:
            self._seed_locked()

    # ----- EntropySource -----------------------------------------------------

    def random_bytes(self, n: int) -> bytes:
        check_request(n)
        if n == 0:
            return b""
        with self._lock:
            if self._state is None or self._reseed_due_locked():
                self._seed_locked()
            assert self._state is not None
            out = _expand(self._state, self._counter, n)
            self._state = _ratchet(self._state)
            self._counter += 1
            self._since_seed += 1
            self._draws += 1
            self._bytes_out += n
            return out

    # ----- lifecycle ---------------------------------------------------------

    @property
    def upstream(self) -> EntropySource:
        return self._upstream

    @property
    def seeded(self) -> bool:
        return self._state is not None

    def stats(self) -> PoolStats:
        with self._lock:
            return PoolStats(
                seeded=self._state is not None,
                draws=self._draws,
                reseeds=self._reseeds,
                bytes_out=self._bytes_out,
            )

    def close(self) -> None:
        """Wipe the state. The next request seeds again from upstream."""
        with self._lock:
            self._state = None
            self._counter = 0
            self._since_seed = 0
        logger.debug("entropy pool closed")

    def __repr__(self) -> str:
        return (
            f"EntropyPool(upstream={self._upstream!r}, "
            f"reseed_after_draws={self._reseed_after}, "
            f"reseed_interval_s={self._reseed_interval})"
        )


# -----------------------------------------------------------------------------#
# Process-wide default
# -----------------------------------------------------------------------------#

_DEFAULT: Optional[EntropyPool] = None
_DEFAULT_LOCK = threading.Lock()


def default_pool() -> EntropyPool:
    """Return the process-wide pool, building it on first use."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = EntropyPool()
        return _DEFAULT


def reset_default_pool() -> None:
    """Close and forget the process-wide pool."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        pool, _DEFAULT = _DEFAULT, None
    if pool is not None:
        pool.close()


__all__ = [
    "EntropyPool",
    "PoolStats",
    "default_pool",
    "reset_default_pool",
]
