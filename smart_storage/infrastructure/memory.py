"""
Durable address space backing the region allocator.

A `Memory` is one contiguous byte space measured in 64 KiB pages. It only
grows. `FileMemory` maps a file so the bytes survive restarts. `VolatileMemory`
keeps them in a bytearray and is used by tests and throwaway stores.

The file is held under an exclusive `flock` for as long as it is open, so a
second process (or a second handle in the same process) cannot interleave
writes with the owner.
"""

from __future__ import annotations

import abc
import fcntl
import mmap
import os
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from smart_storage.domain.errors import BoundsError, CorruptRegionError, StoreLockedError
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)

PAGE_SIZE = 64 * 1024

# 4 GiB.
DEFAULT_MAX_PAGES = 65536


class Memory(abc.ABC):
    """
    Page-granular, growable byte space.

    Subclasses provide storage; bounds checking lives here.
    """

    def __init__(self, max_pages: Optional[int] = None) -> None:
        self.max_pages = max_pages if max_pages is not None else DEFAULT_MAX_PAGES

    @abc.abstractmethod
    def size(self) -> int:
        """Current size in pages."""

    @abc.abstractmethod
    def _resize(self, pages: int) -> None:
        """Extend the backing storage to exactly `pages` pages."""

    @abc.abstractmethod
    def _read(self, offset: int, length: int) -> bytes: ...

    @abc.abstractmethod
    def _write(self, offset: int, data: bytes) -> None: ...

    def grow(self, pages: int) -> int:
        """
        Add `pages` zero-filled pages.

        Returns
        -------
        int
            The previous size in pages, or -1 if the memory cannot grow that far.
        """
        previous = self.size()
        if pages < 0 or previous + pages > self.max_pages:
            return -1
        if pages:
            self._resize(previous + pages)
        return previous

    def read(self, offset: int, length: int) -> bytes:
        self._check_bounds(offset, length)
        return self._read(offset, length)

    def write(self, offset: int, data: bytes) -> None:
        self._check_bounds(offset, len(data))
        self._write(offset, data)

    def flush(self) -> None:
        """Push pending writes to durable storage. No-op for volatile memory."""

    def close(self) -> None:
        """Release the backing storage."""

    def _check_bounds(self, offset: int, length: int) -> None:
        limit = self.size() * PAGE_SIZE
        if offset < 0 or length < 0 or offset + length > limit:
            raise BoundsError(offset, length, limit)

    def __enter__(self) -> "Memory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class VolatileMemory(Memory):
    """Memory held in process; lost when the object is discarded."""

    def __init__(self, max_pages: Optional[int] = None) -> None:
        super().__init__(max_pages)
        self._buffer = bytearray()

    def size(self) -> int:
        return len(self._buffer) // PAGE_SIZE

    def _resize(self, pages: int) -> None:
        self._buffer.extend(bytes(pages * PAGE_SIZE - len(self._buffer)))

    def _read(self, offset: int, length: int) -> bytes:
        return bytes(self._buffer[offset : offset + length])

    def _write(self, offset: int, data: bytes) -> None:
        self._buffer[offset : offset + len(data)] = data


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
    retry=retry_if_exception_type(BlockingIOError),
    reraise=True,
)
def _lock_exclusive(fd: int) -> None:
    """
    Take an exclusive, non-blocking `flock` on `fd`.

    Retries with exponential backoff while another holder releases the file,
    e.g. a previous CLI invocation that is still shutting down.
    """
    fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)


class FileMemory(Memory):
    """
    Memory mapped from a file.

    The file is created on first use and grows in whole pages. Writes land in
    the shared mapping; `flush` runs `msync` and `fsync` so they are on disk
    when it returns.
    """

    def __init__(self, path: Path | str, max_pages: Optional[int] = None) -> None:
        super().__init__(max_pages)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fd: Optional[int] = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        self._map: Optional[mmap.mmap] = None

        try:
            _lock_exclusive(self._fd)
        except BlockingIOError as exc:
            os.close(self._fd)
            self._fd = None
            raise StoreLockedError(f"{self.path} is locked by another process") from exc

        file_size = os.fstat(self._fd).st_size
        if file_size % PAGE_SIZE:
            self.close()
            raise CorruptRegionError(
                f"{self.path} is {file_size} bytes, not a whole number of pages"
            )
        self._pages = file_size // PAGE_SIZE
        if self._pages:
            self._map = mmap.mmap(self._fd, file_size)
        log.debug("Opened file memory", extra={"path": str(self.path), "pages": self._pages})

    def size(self) -> int:
        return self._pages

    def _resize(self, pages: int) -> None:
        fd = self._require_open()
        if self._map is not None:
            self._map.flush()
            self._map.close()
            self._map = None
        os.ftruncate(fd, pages * PAGE_SIZE)
        self._map = mmap.mmap(fd, pages * PAGE_SIZE)
        self._pages = pages

    def _read(self, offset: int, length: int) -> bytes:
        if not length:
            return b""
        self._require_open()
        assert self._map is not None
        return self._map[offset : offset + length]

    def _write(self, offset: int, data: bytes) -> None:
        if not data:
            return
        self._require_open()
        assert self._map is not None
        self._map[offset : offset + len(data)] = data

    def flush(self) -> None:
        fd = self._require_open()
        if self._map is not None:
            self._map.flush()
        os.fsync(fd)

    def close(self) -> None:
        if self._fd is None:
            return
        try:
            if self._map is not None:
                self._map.flush()
                self._map.close()
                self._map = None
            os.fsync(self._fd)
        finally:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
            os.close(self._fd)
            self._fd = None
            log.debug("Closed file memory", extra={"path": str(self.path)})

    @property
    def closed(self) -> bool:
        return self._fd is None

    def _require_open(self) -> int:
        if self._fd is None:
            raise ValueError(f"{self.path} is closed")
        return self._fd


__all__ = [
    "PAGE_SIZE",
    "DEFAULT_MAX_PAGES",
    "Memory",
    "VolatileMemory",
    "FileMemory",
]
