"""
Process-wide store bootstrap for the host layer.

The CLI and scripts share one Store per process. `StoreManager` opens it from
settings on first use and closes it at interpreter exit. Library code and
tests should construct `Store` directly instead.
"""

from __future__ import annotations

import atexit
import threading
from typing import Optional

from smart_storage.config import get_settings
from smart_storage.infrastructure.store import Store
from smart_storage.services.items import ItemService
from smart_storage.utils.clock import Clock
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)


class StoreManager:
    """
    Thread-safe singleton owning the host's Store.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["StoreManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "StoreManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._store = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_store(self) -> Store:
        """
        Get or open the configured store.

        Returns
        -------
        Store
            The managed store instance.
        """
        with self._lock:
            if self._store is None:
                settings = get_settings()
                self._store = Store.open(
                    settings.store_path, bucket_size_pages=settings.store_bucket_size_pages
                )
            return self._store

    def close_all(self) -> None:
        """
        Close the managed store, if open.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._store is not None:
                try:
                    self._store.close()
                    log.debug("Store closed")
                finally:
                    self._store = None


def get_store() -> Store:
    """Get the process-wide store via StoreManager."""
    return StoreManager().get_store()


def get_item_service(clock: Optional[Clock] = None) -> ItemService:
    """Build an ItemService over the process-wide store."""
    return ItemService(get_store(), clock=clock)


__all__ = ["StoreManager", "get_store", "get_item_service"]
