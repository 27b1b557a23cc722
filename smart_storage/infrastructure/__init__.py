"""
Infrastructure package for Smart Storage.

Centralizes the persistence layer: durable memory, region allocation, the id
counter, the record codec and the record table. Keep this layer focused on
bytes and layout, decoupled from item semantics.
"""

from smart_storage.infrastructure.codec import RecordCodec
from smart_storage.infrastructure.counter import DurableCounter
from smart_storage.infrastructure.memory import PAGE_SIZE, FileMemory, Memory, VolatileMemory
from smart_storage.infrastructure.regions import Region, RegionAllocator
from smart_storage.infrastructure.store import COUNTER_REGION_ID, RECORD_TABLE_REGION_ID, Store
from smart_storage.infrastructure.table import RecordTable

__all__ = [
    "PAGE_SIZE",
    "COUNTER_REGION_ID",
    "RECORD_TABLE_REGION_ID",
    "DurableCounter",
    "FileMemory",
    "Memory",
    "RecordCodec",
    "RecordTable",
    "Region",
    "RegionAllocator",
    "Store",
    "VolatileMemory",
]
