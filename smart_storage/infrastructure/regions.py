"""
Region allocator: named, independently growable regions over one Memory.

Physical layout (all integers little-endian):

  Page 0 (header)
    [0000-0002] Magic "SRM"
    [0003]      Layout version
    [0004-0005] Buckets in use (u16)
    [0006-0007] Bucket size in pages (u16)
    [0008-2047] Region sizes in pages, one u64 per region id (255 ids)
    [2048-...]  Bucket table, one byte per bucket: owning region id, 0xFF = free
  Page 1..    Buckets, `bucket size` pages each, handed out in order

A region grows by claiming whole buckets. Its virtual offset N lives in the
region's (N // bucket bytes)-th bucket, so regions never overlap and the same
region id maps to the same bytes every time the memory is reopened.
"""

from __future__ import annotations

import struct
from typing import Dict, Iterator, List, Tuple

from smart_storage.domain.errors import BoundsError, CorruptRegionError, RegionAllocationError
from smart_storage.infrastructure.memory import PAGE_SIZE, Memory
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)

MAGIC = b"SRM"
LAYOUT_VERSION = 1

MAX_REGIONS = 255
MAX_BUCKETS = 32768
UNALLOCATED = 0xFF
DEFAULT_BUCKET_SIZE_PAGES = 16

HEADER_PAGES = 1
_HEADER = struct.Struct("<3sBHH")
_SIZE = struct.Struct("<Q")
_BUCKETS_IN_USE = struct.Struct("<H")

OFF_BUCKETS_IN_USE = 4
OFF_REGION_SIZES = 8
OFF_BUCKET_TABLE = OFF_REGION_SIZES + MAX_REGIONS * _SIZE.size
HEADER_SIZE = OFF_BUCKET_TABLE + MAX_BUCKETS


class Region:
    """
    Handle to one region. Offsets are relative to the start of the region.

    Handles are cheap views; all state lives in the allocator and the memory.
    """

    def __init__(self, allocator: "RegionAllocator", region_id: int) -> None:
        self._allocator = allocator
        self.region_id = region_id

    def size(self) -> int:
        """Current size in pages."""
        return self._allocator._region_sizes[self.region_id]

    def grow(self, pages: int) -> int:
        """Add `pages` pages. Returns the previous size, or -1 on failure."""
        return self._allocator._grow(self.region_id, pages)

    def read(self, offset: int, length: int) -> bytes:
        self._check_bounds(offset, length)
        memory = self._allocator.memory
        return b"".join(
            memory.read(physical, span)
            for physical, span in self._allocator._spans(self.region_id, offset, length)
        )

    def write(self, offset: int, data: bytes) -> None:
        self._check_bounds(offset, len(data))
        memory = self._allocator.memory
        position = 0
        for physical, span in self._allocator._spans(self.region_id, offset, len(data)):
            memory.write(physical, data[position : position + span])
            position += span

    def flush(self) -> None:
        self._allocator.memory.flush()

    def _check_bounds(self, offset: int, length: int) -> None:
        limit = self.size() * PAGE_SIZE
        if offset < 0 or length < 0 or offset + length > limit:
            raise BoundsError(offset, length, limit)

    def __repr__(self) -> str:
        return f"Region(id={self.region_id}, pages={self.size()})"


class RegionAllocator:
    """
    Partitions a Memory into up to 255 regions.

    Parameters
    ----------
    memory : Memory
        The durable address space. Formatted on first use.
    bucket_size_pages : int
        Bucket size for a fresh memory. An existing memory keeps the bucket size
        recorded in its header.
    """

    def __init__(self, memory: Memory, bucket_size_pages: int = DEFAULT_BUCKET_SIZE_PAGES) -> None:
        if not 1 <= bucket_size_pages <= 0xFFFF:
            raise ValueError(f"bucket size must be between 1 and 65535 pages, got {bucket_size_pages}")
        self.memory = memory
        self._handles: Dict[int, Region] = {}
        self._region_sizes: List[int] = [0] * MAX_REGIONS
        self._buckets: List[List[int]] = [[] for _ in range(MAX_REGIONS)]
        self._buckets_in_use = 0
        self.bucket_size_pages = bucket_size_pages

        if memory.size() == 0:
            self._format()
        else:
            self._load(requested_bucket_size=bucket_size_pages)

    def get(self, region_id: int) -> Region:
        """Return the handle for `region_id`."""
        if not 0 <= region_id < MAX_REGIONS:
            raise ValueError(f"region id must be between 0 and {MAX_REGIONS - 1}, got {region_id}")
        handle = self._handles.get(region_id)
        if handle is None:
            handle = self._handles[region_id] = Region(self, region_id)
        return handle

    @property
    def buckets_in_use(self) -> int:
        return self._buckets_in_use

    def region_sizes(self) -> Dict[int, int]:
        """Sizes in pages of every region that has been grown at least once."""
        return {rid: size for rid, size in enumerate(self._region_sizes) if size}

    def _format(self) -> None:
        if self.memory.grow(HEADER_PAGES) == -1:
            raise RegionAllocationError("memory cannot hold the region header")
        header = bytearray(HEADER_SIZE)
        _HEADER.pack_into(header, 0, MAGIC, LAYOUT_VERSION, 0, self.bucket_size_pages)
        header[OFF_BUCKET_TABLE:] = bytes([UNALLOCATED]) * MAX_BUCKETS
        self.memory.write(0, bytes(header))
        self.memory.flush()
        log.info("Formatted region header", extra={"bucket_size_pages": self.bucket_size_pages})

    def _load(self, requested_bucket_size: int) -> None:
        if self.memory.size() < HEADER_PAGES:
            raise CorruptRegionError("memory is smaller than the region header")
        raw = self.memory.read(0, HEADER_SIZE)
        magic, version, in_use, bucket_size = _HEADER.unpack_from(raw, 0)
        if magic != MAGIC:
            raise CorruptRegionError(f"region header magic mismatch: {magic!r}")
        if version != LAYOUT_VERSION:
            raise CorruptRegionError(f"unsupported region layout version {version}")
        if bucket_size < 1 or in_use > MAX_BUCKETS:
            raise CorruptRegionError("region header fields out of range")
        if bucket_size != requested_bucket_size:
            log.warning(
                "Bucket size differs from configuration; using the stored value",
                extra={"stored": bucket_size, "requested": requested_bucket_size},
            )
        self.bucket_size_pages = bucket_size
        self._buckets_in_use = in_use
        self._region_sizes = list(struct.unpack_from(f"<{MAX_REGIONS}Q", raw, OFF_REGION_SIZES))

        for bucket in range(in_use):
            owner = raw[OFF_BUCKET_TABLE + bucket]
            if owner == UNALLOCATED:
                raise CorruptRegionError(f"bucket {bucket} is counted as used but has no owner")
            self._buckets[owner].append(bucket)

        for rid, size in enumerate(self._region_sizes):
            if size > len(self._buckets[rid]) * bucket_size:
                raise CorruptRegionError(f"region {rid} is larger than the buckets it owns")

        if self.memory.size() < HEADER_PAGES + in_use * bucket_size:
            raise CorruptRegionError("memory is smaller than its allocated buckets")
        log.debug("Loaded region header", extra={"buckets_in_use": in_use})

    def _grow(self, region_id: int, pages: int) -> int:
        if pages < 0:
            return -1
        previous = self._region_sizes[region_id]
        wanted = previous + pages
        owned = self._buckets[region_id]
        extra = -(-wanted // self.bucket_size_pages) - len(owned)

        if extra > 0:
            if self._buckets_in_use + extra > MAX_BUCKETS:
                return -1
            physical_pages = HEADER_PAGES + (self._buckets_in_use + extra) * self.bucket_size_pages
            missing = physical_pages - self.memory.size()
            if missing > 0 and self.memory.grow(missing) == -1:
                return -1
            first = self._buckets_in_use
            new_buckets = list(range(first, first + extra))
            self.memory.write(OFF_BUCKET_TABLE + first, bytes([region_id]) * extra)
            self._buckets_in_use += extra
            self.memory.write(OFF_BUCKETS_IN_USE, _BUCKETS_IN_USE.pack(self._buckets_in_use))
            owned.extend(new_buckets)
            log.debug(
                "Assigned buckets to region",
                extra={"region_id": region_id, "buckets": new_buckets},
            )

        self._region_sizes[region_id] = wanted
        self.memory.write(OFF_REGION_SIZES + region_id * _SIZE.size, _SIZE.pack(wanted))
        return previous

    def _spans(self, region_id: int, offset: int, length: int) -> Iterator[Tuple[int, int]]:
        """Yield (physical offset, length) pieces covering a virtual range."""
        bucket_bytes = self.bucket_size_pages * PAGE_SIZE
        owned = self._buckets[region_id]
        while length > 0:
            index, within = divmod(offset, bucket_bytes)
            span = min(length, bucket_bytes - within)
            base = (HEADER_PAGES + owned[index] * self.bucket_size_pages) * PAGE_SIZE
            yield base + within, span
            offset += span
            length -= span


__all__ = [
    "MAX_REGIONS",
    "MAX_BUCKETS",
    "DEFAULT_BUCKET_SIZE_PAGES",
    "Region",
    "RegionAllocator",
]
