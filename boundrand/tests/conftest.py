from __future__ import annotations

import threading
from typing import Callable, List, Optional

import pytest

from boundrand.errors import EntropyUnavailable


class FixedSource:
    """Returns the same buffer on every call, truncated/padded to n."""

    name = "fixed"

    def __init__(self, buf: bytes) -> None:
        self.buf = bytes(buf)
        self.calls: List[int] = []
        self._lock = threading.Lock()

    def random_bytes(self, n: int) -> bytes:
        with self._lock:
            self.calls.append(n)
        return (self.buf * (n // max(len(self.buf), 1) + 1))[:n]


class ShortSource:
    name = "short"

    def __init__(self, length: int) -> None:
        self.length = length

    def random_bytes(self, n: int) -> bytes:
        return b"\x00" * self.length


class FailingSource:
    name = "failing"

    def __init__(self, exc: Optional[BaseException] = None) -> None:
        self.exc = exc or EntropyUnavailable(
            "unable to get entropy from the OS", source="failing", cause=OSError(5, "EIO")
        )
        self.calls = 0

    def random_bytes(self, n: int) -> bytes:
        self.calls += 1
        raise self.exc


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def buffer_folding_to(value: int) -> bytes:
    """A 32-byte buffer whose fold is `value` (0 <= value < 255)."""
    assert 0 <= value < 255
    return bytes([0] * 30 + [value, 0xAB])


@pytest.fixture
def fixed_source() -> Callable[[bytes], FixedSource]:
    return FixedSource


@pytest.fixture
def folding_source() -> Callable[[int], FixedSource]:
    return lambda value: FixedSource(buffer_folding_to(value))


@pytest.fixture
def failing_source() -> Callable[..., FailingSource]:
    return FailingSource


@pytest.fixture
def short_source() -> Callable[[int], ShortSource]:
    return ShortSource


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
