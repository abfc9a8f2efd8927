"""
boundrand.entropy
=================

Entropy sources for bounded draws. Every source implements the one-operation
`EntropySource` protocol:

    def random_bytes(self, n: int) -> bytes

and raises :class:`boundrand.errors.EntropyUnavailable` when it cannot
deliver exactly `n` bytes.

Sources
-------
- OSEntropy     : the OS secure random interface (default)
- FileEntropy   : a file, FIFO or character device
- DeviceEntropy : FileEntropy with device defaults
- EntropyPool   : seeded-once, hash-ratcheted cache over another source

Typical usage
-------------
    from boundrand.entropy import EntropyPool, OSEntropy

    pool = EntropyPool(OSEntropy(), reseed_after_draws=1024)
    b = pool.random_bytes(32)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from .base import EntropySource
from .file import DeviceEntropy, FileEntropy
from .pool import EntropyPool, PoolStats, default_pool, reset_default_pool
from .system import OSEntropy

if TYPE_CHECKING:  # pragma: no cover
    from ..config import BoundRandConfig


def source_from_config(
    cfg: "BoundRandConfig", *, on_reseed: Optional[Callable[[], None]] = None
) -> EntropySource:
    """
    Build the entropy source described by `cfg`, wrapped in an `EntropyPool`
    when the pool is enabled.
    """
    cfg.validate()
    src: EntropySource
    if cfg.source.kind == "file":
        assert cfg.source.path is not None
        src = FileEntropy(cfg.source.path, reopen_each_call=cfg.source.reopen_each_call)
    else:
        src = OSEntropy()
    if cfg.pool.enabled:
        src = EntropyPool(
            src,
            reseed_after_draws=cfg.pool.reseed_after_draws,
            reseed_interval_s=cfg.pool.reseed_interval_s,
            on_reseed=on_reseed,
        )
    return src


__all__ = [
    "EntropySource",
    "OSEntropy",
    "FileEntropy",
    "DeviceEntropy",
    "EntropyPool",
    "PoolStats",
    "default_pool",
    "reset_default_pool",
    "source_from_config",
]
