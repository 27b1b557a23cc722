"""
Exception hierarchy for Smart Storage.

`ItemNotFoundError` is the only recoverable error; the dispatcher turns it
into an `Err` result. Everything under `StorageFault` means the store cannot
safely continue the current operation and must propagate to the host.
"""
from __future__ import annotations


class SmartStorageError(Exception):
    """Base class for all Smart Storage exceptions."""


class ItemNotFoundError(SmartStorageError):
    """Raised when an operation targets an id absent from the record table."""

    def __init__(self, item_id: int, operation: str) -> None:
        self.item_id = item_id
        self.operation = operation
        self.message = f"couldn't {operation} an item with id={item_id}. item not found"
        super().__init__(self.message)


class StorageFault(SmartStorageError):
    """Base class for fatal storage errors."""


class BoundsError(StorageFault):
    """Raised when accessing memory outside the current size of a region."""

    def __init__(self, offset: int, length: int, limit: int) -> None:
        self.offset = offset
        self.length = length
        self.limit = limit
        super().__init__(
            f"access of {length} bytes at offset {offset} exceeds region size {limit}"
        )


class CorruptRegionError(StorageFault):
    """Raised when a persisted header has the wrong magic, version or layout."""


class RegionAllocationError(StorageFault):
    """Raised when a region cannot grow."""


class RecordTooLargeError(StorageFault):
    """Raised when a record encodes to more bytes than the codec allows."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"encoded record is {size} bytes; the limit is {limit}")


class CounterOverflowError(StorageFault):
    """Raised when the id counter would exceed the u64 range."""


class StoreLockedError(StorageFault):
    """Raised when another process holds the store file."""


__all__ = [
    "SmartStorageError",
    "ItemNotFoundError",
    "StorageFault",
    "BoundsError",
    "CorruptRegionError",
    "RegionAllocationError",
    "RecordTooLargeError",
    "CounterOverflowError",
    "StoreLockedError",
]
