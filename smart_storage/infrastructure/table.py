"""
Ordered u64 -> StorageItem map persisted in a region.

Layout:
  [00-31]  Header
             [00-02] Magic "SST"
             [03]    Layout version
             [04-07] Key size (u32, 8)
             [08-11] Max value size (u32, the codec's MAX_SIZE)
             [12-15] Reserved
             [16-23] Entry count (u64)
             [24-31] Reserved
  [32-...] Slots sorted by key, each `key u64 | value length u32 | value`,
           stride 12 + max value size

Appending a key larger than every stored key writes the slot first and then
bumps the entry count, so a crash in between leaves the table as it was.
Overwrites and removals rewrite slots in place and are not crash-atomic.
"""

from __future__ import annotations

import struct
from bisect import bisect_left
from collections.abc import Sequence
from typing import Iterator, Optional, Tuple

from smart_storage.domain.errors import CorruptRegionError, RegionAllocationError
from smart_storage.domain.models import U64_MAX, StorageItem
from smart_storage.infrastructure.codec import RecordCodec
from smart_storage.infrastructure.memory import PAGE_SIZE
from smart_storage.infrastructure.regions import Region

MAGIC = b"SST"
LAYOUT_VERSION = 1
HEADER_SIZE = 32

_HEADER = struct.Struct("<3sBII4xQ")
_COUNT = struct.Struct("<Q")
_KEY = struct.Struct("<Q")
_SLOT_PREFIX = struct.Struct("<QI")
OFF_COUNT = 16


class _KeyView(Sequence):
    """Read-only view of the stored keys, for bisect."""

    def __init__(self, table: "RecordTable") -> None:
        self._table = table

    def __len__(self) -> int:
        return len(self._table)

    def __getitem__(self, index):  # type: ignore[override]
        return self._table._key_at(index)


class RecordTable:
    """
    Sorted slot array of encoded records.

    Parameters
    ----------
    region : Region
        Region holding the table. Formatted on first use.
    codec : RecordCodec, optional
        Serializer for values; its MAX_SIZE fixes the slot stride.
    """

    def __init__(self, region: Region, codec: Optional[RecordCodec] = None) -> None:
        self._region = region
        self.codec = codec or RecordCodec()
        self.slot_size = _SLOT_PREFIX.size + self.codec.MAX_SIZE

        if region.size() == 0:
            self._reserve(0)
            header = _HEADER.pack(MAGIC, LAYOUT_VERSION, _KEY.size, self.codec.MAX_SIZE, 0)
            region.write(0, header.ljust(HEADER_SIZE, b"\x00"))
            self._length = 0
            return

        magic, version, key_size, max_value, count = _HEADER.unpack(
            region.read(0, _HEADER.size)
        )
        if magic != MAGIC:
            raise CorruptRegionError(f"record table magic mismatch: {magic!r}")
        if version != LAYOUT_VERSION or key_size != _KEY.size:
            raise CorruptRegionError(f"unsupported record table layout v{version}")
        if max_value != self.codec.MAX_SIZE:
            raise CorruptRegionError(
                f"record table was written with {max_value}-byte values, "
                f"codec allows {self.codec.MAX_SIZE}"
            )
        if HEADER_SIZE + count * self.slot_size > region.size() * PAGE_SIZE:
            raise CorruptRegionError(f"record table claims {count} entries beyond its region")
        self._length = count

    def __len__(self) -> int:
        return self._length

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, int):
            return False
        _, found = self._find(key)
        return found

    def get(self, key: int) -> Optional[StorageItem]:
        index, found = self._find(key)
        return self._value_at(index) if found else None

    def insert(self, key: int, item: StorageItem) -> Optional[StorageItem]:
        """
        Insert or overwrite `key`. Returns the previous value, if any.

        The value is encoded before anything is written.
        """
        data = self.codec.encode(item)
        index, found = self._find(key)
        slot = _SLOT_PREFIX.pack(key, len(data)) + data
        if found:
            previous = self._value_at(index)
            self._region.write(self._slot_offset(index), slot)
            return previous

        self._reserve(self._length + 1)
        if index < self._length:
            tail = self._region.read(self._slot_offset(index), (self._length - index) * self.slot_size)
            self._region.write(self._slot_offset(index + 1), tail)
        self._region.write(self._slot_offset(index), slot)
        self._set_length(self._length + 1)
        return None

    def remove(self, key: int) -> Optional[StorageItem]:
        index, found = self._find(key)
        if not found:
            return None
        previous = self._value_at(index)
        following = self._length - index - 1
        if following:
            tail = self._region.read(self._slot_offset(index + 1), following * self.slot_size)
            self._region.write(self._slot_offset(index), tail)
        self._set_length(self._length - 1)
        return previous

    def iterate(self) -> Iterator[Tuple[int, StorageItem]]:
        """
        Iterate (key, item) pairs in ascending key order.

        Slots are read when this is called; later writes to the table do not
        show up in an iterator that already exists.
        """
        raw = self._region.read(HEADER_SIZE, self._length * self.slot_size)
        return self._decode_slots(raw)

    def keys(self) -> list[int]:
        return [self._key_at(index) for index in range(self._length)]

    def _decode_slots(self, raw: bytes) -> Iterator[Tuple[int, StorageItem]]:
        for start in range(0, len(raw), self.slot_size):
            key, length = _SLOT_PREFIX.unpack_from(raw, start)
            body_start = start + _SLOT_PREFIX.size
            yield key, self._decode(raw[body_start : body_start + length])

    def _find(self, key: int) -> Tuple[int, bool]:
        if not 0 <= key <= U64_MAX:
            raise ValueError(f"key {key} is outside the u64 range")
        index = bisect_left(_KeyView(self), key)
        return index, index < self._length and self._key_at(index) == key

    def _slot_offset(self, index: int) -> int:
        return HEADER_SIZE + index * self.slot_size

    def _key_at(self, index: int) -> int:
        if not 0 <= index < self._length:
            raise IndexError(index)
        (key,) = _KEY.unpack(self._region.read(self._slot_offset(index), _KEY.size))
        return key

    def _value_at(self, index: int) -> StorageItem:
        offset = self._slot_offset(index)
        _, length = _SLOT_PREFIX.unpack(self._region.read(offset, _SLOT_PREFIX.size))
        return self._decode(self._region.read(offset + _SLOT_PREFIX.size, length))

    def _decode(self, data: bytes) -> StorageItem:
        if len(data) > self.codec.MAX_SIZE:
            raise CorruptRegionError(f"stored value of {len(data)} bytes exceeds the slot")
        return self.codec.decode(data)

    def _set_length(self, length: int) -> None:
        self._region.write(OFF_COUNT, _COUNT.pack(length))
        self._length = length

    def _reserve(self, entries: int) -> None:
        """Grow the region so it can hold `entries` slots."""
        needed = -(-(HEADER_SIZE + entries * self.slot_size) // PAGE_SIZE)
        missing = needed - self._region.size()
        if missing > 0 and self._region.grow(missing) == -1:
            raise RegionAllocationError(
                f"cannot grow region {self._region.region_id} to {needed} pages"
            )


__all__ = ["RecordTable"]
