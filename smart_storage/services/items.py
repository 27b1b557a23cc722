"""
Item service: the create/read/update/delete/search operations over a Store.

Each public method runs as one `Store.atomic()` block, so operations never
interleave and mutations are flushed before the method returns. Missing ids
raise `ItemNotFoundError`; storage faults propagate unchanged.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from smart_storage.domain.errors import ItemNotFoundError
from smart_storage.domain.models import StorageItem, StorageItemPayload
from smart_storage.infrastructure.store import Store
from smart_storage.utils.clock import Clock, MonotonicClock
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)


class ItemService:
    """
    Operations on storage items.

    Parameters
    ----------
    store : Store
        Persistent state. The service holds no state of its own.
    clock : Clock, optional
        Nanosecond timestamp source for `created_at` / `updated_at`.
        Defaults to a strictly increasing wall clock.
    """

    def __init__(self, store: Store, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or MonotonicClock()

    def create(self, payload: StorageItemPayload) -> StorageItem:
        with self._store.atomic() as store:
            item = StorageItem(
                id=store.counter.peek_next(),
                name=payload.name,
                description=payload.description,
                location=payload.location,
                created_at=self._clock(),
                updated_at=None,
                is_available=payload.is_available,
            )
            # Fail on an oversize record before the id is consumed.
            store.codec.encode(item)
            store.counter.next_id()
            store.table.insert(item.id, item)
        log.info("Item created", extra={"item_id": item.id})
        return item

    def get(self, item_id: int) -> StorageItem:
        with self._store.atomic(flush=False) as store:
            item = store.table.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id, "get")
        return item

    def list_all(self) -> List[StorageItem]:
        return self._scan(lambda item: True)

    def list_available(self) -> List[StorageItem]:
        return self._scan(lambda item: item.is_available)

    def search(self, query: str) -> List[StorageItem]:
        """Items whose name or description contains `query` (case-sensitive)."""
        return self._scan(lambda item: query in item.name or query in item.description)

    def update(self, item_id: int, payload: StorageItemPayload) -> StorageItem:
        return self._modify(
            item_id,
            "update",
            name=payload.name,
            description=payload.description,
            location=payload.location,
            is_available=payload.is_available,
        )

    def is_available(self, item_id: int) -> bool:
        with self._store.atomic(flush=False) as store:
            item = store.table.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id, "check availability of")
        return item.is_available

    def mark_available(self, item_id: int) -> StorageItem:
        return self._modify(item_id, "mark available", is_available=True)

    def mark_unavailable(self, item_id: int) -> StorageItem:
        return self._modify(item_id, "mark unavailable", is_available=False)

    def delete(self, item_id: int) -> StorageItem:
        with self._store.atomic() as store:
            item = store.table.remove(item_id)
        if item is None:
            raise ItemNotFoundError(item_id, "delete")
        log.info("Item deleted", extra={"item_id": item_id})
        return item

    def _modify(self, item_id: int, operation: str, **changes: object) -> StorageItem:
        with self._store.atomic() as store:
            current = store.table.get(item_id)
            if current is None:
                raise ItemNotFoundError(item_id, operation)
            # The clock may have stepped back since the record was last written.
            last_written = current.updated_at if current.updated_at is not None else current.created_at
            changes["updated_at"] = max(self._clock(), last_written + 1)
            item = StorageItem.model_validate({**current.model_dump(), **changes})
            store.table.insert(item_id, item)
        log.info("Item modified", extra={"item_id": item_id, "operation": operation})
        return item

    def _scan(self, keep: Callable[[StorageItem], bool]) -> List[StorageItem]:
        with self._store.atomic(flush=False) as store:
            return [item for _, item in store.table.iterate() if keep(item)]


__all__ = ["ItemService"]
