"""
Durable id counter kept in its own region.

Layout:
  [00-02] Magic "SCL"
  [03]    Layout version
  [04-07] Value length in bytes (u32, always 8)
  [08-15] Value (u64)
"""

from __future__ import annotations

import struct

from smart_storage.domain.errors import CorruptRegionError, CounterOverflowError, RegionAllocationError
from smart_storage.domain.models import U64_MAX
from smart_storage.infrastructure.regions import Region

MAGIC = b"SCL"
LAYOUT_VERSION = 1

_HEADER = struct.Struct("<3sBI")
_VALUE = struct.Struct("<Q")


class DurableCounter:
    """
    A persisted u64 that hands out strictly increasing ids starting at 1.

    Every `set` writes through to the region; the in-memory copy only saves a
    read on `get`.
    """

    def __init__(self, region: Region, initial: int = 0) -> None:
        self._region = region
        if region.size() == 0:
            if region.grow(1) == -1:
                raise RegionAllocationError("cannot allocate the counter region")
            self._region.write(0, _HEADER.pack(MAGIC, LAYOUT_VERSION, _VALUE.size))
            self.set(initial)
            return

        magic, version, length = _HEADER.unpack(region.read(0, _HEADER.size))
        if magic != MAGIC:
            raise CorruptRegionError(f"counter magic mismatch: {magic!r}")
        if version != LAYOUT_VERSION or length != _VALUE.size:
            raise CorruptRegionError(f"unsupported counter layout v{version} ({length} bytes)")
        (self._value,) = _VALUE.unpack(region.read(_HEADER.size, _VALUE.size))

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        if not 0 <= value <= U64_MAX:
            raise CounterOverflowError(f"counter value {value} is outside the u64 range")
        self._region.write(_HEADER.size, _VALUE.pack(value))
        self._value = value

    def peek_next(self) -> int:
        """The id `next_id` would return, without consuming it."""
        if self._value >= U64_MAX:
            raise CounterOverflowError("id counter exhausted")
        return self._value + 1

    def next_id(self) -> int:
        """Persist and return the next id."""
        value = self.peek_next()
        self.set(value)
        return value


__all__ = ["DurableCounter"]
