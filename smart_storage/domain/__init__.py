"""
Domain package for Smart Storage.

Exports the record models and the error hierarchy shared by the storage
layer, the item service and the host dispatcher.
"""

from smart_storage.domain.errors import (
    BoundsError,
    CorruptRegionError,
    CounterOverflowError,
    ItemNotFoundError,
    RecordTooLargeError,
    RegionAllocationError,
    SmartStorageError,
    StorageFault,
    StoreLockedError,
)
from smart_storage.domain.models import (
    U64_MAX,
    Error,
    NotFoundDetail,
    StorageItem,
    StorageItemPayload,
)

__all__ = [
    "U64_MAX",
    "Error",
    "NotFoundDetail",
    "StorageItem",
    "StorageItemPayload",
    "BoundsError",
    "CorruptRegionError",
    "CounterOverflowError",
    "ItemNotFoundError",
    "RecordTooLargeError",
    "RegionAllocationError",
    "SmartStorageError",
    "StorageFault",
    "StoreLockedError",
]
