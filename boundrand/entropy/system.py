"""
boundrand.entropy.system
========================

The default entropy collaborator: the operating system's secure random
interface, reached through :func:`os.urandom` (``getrandom(2)`` on Linux,
``BCryptGenRandom`` on Windows, ``getentropy``/``/dev/urandom`` elsewhere).
"""

from __future__ import annotations

import os

from ..errors import EntropyUnavailable
from .base import EntropySource, check_request


class OSEntropy(EntropySource):
    """
    Stateless wrapper around the OS CSPRNG.

    Each call performs one blocking read; no bytes are cached between calls,
    so a single instance can be shared freely across threads.
    """

    name = "os"

    def random_bytes(self, n: int) -> bytes:
        check_request(n)
        if n == 0:
            return b""
        try:
            return os.urandom(n)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailable(
                "unable to get entropy from the OS", source=self.name, cause=e
            ) from e

    def __repr__(self) -> str:
        return "OSEntropy()"


__all__ = ["OSEntropy"]
