"""
boundrand.entropy.file
======================

Entropy sources backed by a file path: a character device such as
``/dev/urandom`` or ``/dev/hwrng``, a FIFO fed by an external generator, or a
plain file in tests.

- FileEntropy   : read exactly `n` bytes from a path.
- DeviceEntropy : FileEntropy with device-centric defaults.

Every I/O failure and every short read surfaces as
:class:`boundrand.errors.EntropyUnavailable` with the original exception
attached as its cause.
"""

from __future__ import annotations

import io
import threading
from typing import Optional

from ..constants import (
    DEFAULT_DEVICE_BLOCK_SIZE,
    DEFAULT_DEVICE_PATH,
    DEFAULT_FILE_BLOCK_SIZE,
)
from ..errors import EntropyUnavailable
from .base import EntropySource, check_request


def _read_exact(f: io.BufferedReader, n: int, *, chunk_size: int) -> bytes:
    """
    Read exactly n bytes from an open binary file object, raising EOFError
    if not enough bytes are available.
    """
    out = bytearray()
    remaining = n
    while remaining:
        chunk = f.read(min(remaining, chunk_size))
        if not chunk:
            raise EOFError(f"unexpected EOF: needed {remaining} more bytes")
        out.extend(chunk)
        remaining -= len(chunk)
    return bytes(out)


class FileEntropy(EntropySource):
    """
    Read entropy bytes from a file path.

    Args:
        path: File path to read from.
        reopen_each_call: If True (default), open/close the file per call to
            `random_bytes`. If False, keep a shared handle guarded by a lock;
            the handle is dropped after any failure so the next call reopens.
        block_size: Internal read chunk size.
    """

    def __init__(
        self,
        path: str,
        *,
        reopen_each_call: bool = True,
        block_size: int = DEFAULT_FILE_BLOCK_SIZE,
    ) -> None:
        if not path or not isinstance(path, str):
            raise ValueError("path must be a non-empty string")
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        self._path = path
        self._reopen = reopen_each_call
        self._block = block_size
        self._lock = threading.Lock()
        self._fh: Optional[io.BufferedReader] = None

    @property
    def name(self) -> str:
        return f"file:{self._path}"

    @property
    def path(self) -> str:
        return self._path

    def _open(self) -> io.BufferedReader:
        raw = open(self._path, "rb", buffering=0)
        return io.BufferedReader(raw, buffer_size=self._block)

    def _ensure_open(self) -> io.BufferedReader:
        if self._fh is None:
            self._fh = self._open()
        return self._fh

    def _unavailable(self, e: BaseException) -> EntropyUnavailable:
        return EntropyUnavailable(
            f"unable to read entropy from {self._path}", source=self.name, cause=e
        )

    def random_bytes(self, n: int) -> bytes:
        check_request(n)
        if n == 0:
            return b""
        if self._reopen:
            try:
                with self._open() as fh:
                    return _read_exact(fh, n, chunk_size=self._block)
            except (OSError, EOFError) as e:
                raise self._unavailable(e) from e
        with self._lock:
            try:
                return _read_exact(self._ensure_open(), n, chunk_size=self._block)
            except (OSError, EOFError) as e:
                self._drop_handle()
                raise self._unavailable(e) from e

    def _drop_handle(self) -> None:
        fh, self._fh = self._fh, None
        if fh is not None:
            try:
                fh.close()
            except OSError:
                pass

    def close(self) -> None:
        """Release the shared handle, if one is open."""
        with self._lock:
            self._drop_handle()

    def __enter__(self) -> "FileEntropy":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._path!r}, reopen_each_call={self._reopen})"


class DeviceEntropy(FileEntropy):
    """
    Device-centric source. Defaults suit character devices:

        - Linux : /dev/urandom (default), /dev/hwrng
        - BSD   : /dev/random
        - Custom: vendor device nodes or FIFOs

    This class does not set O_NONBLOCK; reads block until the device delivers.
    """

    def __init__(
        self,
        device_path: str = DEFAULT_DEVICE_PATH,
        *,
        reopen_each_call: bool = False,
        block_size: int = DEFAULT_DEVICE_BLOCK_SIZE,
    ) -> None:
        super().__init__(
            device_path, reopen_each_call=reopen_each_call, block_size=block_size
        )


__all__ = ["FileEntropy", "DeviceEntropy"]
