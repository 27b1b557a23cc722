"""
The Store: one durable memory, its regions, the id counter and the record table.

Region ids are permanent. Giving an existing id a new purpose makes the old
bytes unreadable, so new structures must take an unused id.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from smart_storage.infrastructure.codec import RecordCodec
from smart_storage.infrastructure.counter import DurableCounter
from smart_storage.infrastructure.memory import FileMemory, Memory, VolatileMemory
from smart_storage.infrastructure.regions import DEFAULT_BUCKET_SIZE_PAGES, RegionAllocator
from smart_storage.infrastructure.table import RecordTable
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)

COUNTER_REGION_ID = 0
RECORD_TABLE_REGION_ID = 1


class Store:
    """
    Owns the persistent state behind the item service.

    Operations that must not interleave run inside `atomic()`, which holds a
    re-entrant lock for the duration and flushes the memory on success.
    """

    def __init__(
        self,
        memory: Memory,
        bucket_size_pages: int = DEFAULT_BUCKET_SIZE_PAGES,
        codec: Optional[RecordCodec] = None,
    ) -> None:
        self.memory = memory
        self.allocator = RegionAllocator(memory, bucket_size_pages=bucket_size_pages)
        self.counter = DurableCounter(self.allocator.get(COUNTER_REGION_ID))
        self.table = RecordTable(self.allocator.get(RECORD_TABLE_REGION_ID), codec)
        self.lock = threading.RLock()
        memory.flush()

    @classmethod
    def open(cls, path: Path | str, bucket_size_pages: int = DEFAULT_BUCKET_SIZE_PAGES) -> "Store":
        """Open (or create) a store backed by the file at `path`."""
        memory = FileMemory(path)
        try:
            store = cls(memory, bucket_size_pages=bucket_size_pages)
        except Exception:
            memory.close()
            raise
        log.info(
            "Store opened",
            extra={"path": str(path), "records": len(store.table), "counter": store.counter.get()},
        )
        return store

    @classmethod
    def volatile(cls, bucket_size_pages: int = DEFAULT_BUCKET_SIZE_PAGES) -> "Store":
        """A store that lives only as long as the object."""
        return cls(VolatileMemory(), bucket_size_pages=bucket_size_pages)

    @property
    def codec(self) -> RecordCodec:
        return self.table.codec

    @contextmanager
    def atomic(self, flush: bool = True) -> Generator["Store", None, None]:
        """
        Run a block as one operation.

        Parameters
        ----------
        flush : bool
            Flush the memory after the block completes. Read-only operations
            pass False.
        """
        with self.lock:
            yield self
            if flush:
                self.memory.flush()

    def stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "counter": self.counter.get(),
                "records": len(self.table),
                "bucket_size_pages": self.allocator.bucket_size_pages,
                "buckets_in_use": self.allocator.buckets_in_use,
                "region_pages": self.allocator.region_sizes(),
            }

    def close(self) -> None:
        with self.lock:
            self.memory.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["COUNTER_REGION_ID", "RECORD_TABLE_REGION_ID", "Store"]
