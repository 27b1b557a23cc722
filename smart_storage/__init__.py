"""
Smart Storage - a persistent registry of storage items.

Items live in a single durable address space split into regions: one region
holds the id counter, another an ordered table of bounded-size records. The
package provides:

- The persistence layer (memory, regions, counter, codec, record table)
- An item service with create/read/update/delete/search operations
- A call dispatcher and CLI for hosting those operations
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from smart_storage.config import Settings, get_settings
from smart_storage.dispatch import Dispatcher, available_operations
from smart_storage.domain.errors import ItemNotFoundError, StorageFault
from smart_storage.domain.models import Error, StorageItem, StorageItemPayload
from smart_storage.infrastructure.store import Store
from smart_storage.services.items import ItemService
from smart_storage.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Error",
    "StorageItem",
    "StorageItemPayload",
    "ItemNotFoundError",
    "StorageFault",
    # Persistence and operations
    "Store",
    "ItemService",
    # Hosting
    "Dispatcher",
    "available_operations",
    # Logging
    "configure_logging",
    "get_logger",
]
