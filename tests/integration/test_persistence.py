"""State written through a file-backed store must survive closing and reopening it."""

from __future__ import annotations

from pathlib import Path

import pytest

from smart_storage.domain.errors import CorruptRegionError, ItemNotFoundError, StoreLockedError
from smart_storage.infrastructure.store import Store
from smart_storage.services.items import ItemService
from smart_storage.utils.clock import MonotonicClock


def test_items_and_counter_survive_restart(store_path: Path, make_payload):
    with Store.open(store_path, bucket_size_pages=1) as store:
        service = ItemService(store)
        first = service.create(make_payload())
        second = service.create(make_payload(name="Box B", is_available=False))
        updated = service.update(first.id, make_payload(location="Shelf 4"))

    with Store.open(store_path, bucket_size_pages=1) as store:
        service = ItemService(store)
        assert service.list_all() == [updated, second]
        assert service.get(first.id).location == "Shelf 4"
        assert service.list_available() == [updated]
        assert service.create(make_payload(name="Box C")).id == 3


def test_deleted_ids_are_not_reused_after_restart(store_path: Path, make_payload):
    with Store.open(store_path) as store:
        service = ItemService(store)
        for name in ("one", "two", "three"):
            service.create(make_payload(name=name))
        service.delete(3)

    with Store.open(store_path) as store:
        service = ItemService(store)
        with pytest.raises(ItemNotFoundError):
            service.get(3)
        assert service.create(make_payload(name="four")).id == 4


def test_many_items_across_buckets_survive_restart(store_path: Path, make_payload):
    count = 150
    with Store.open(store_path, bucket_size_pages=1) as store:
        service = ItemService(store)
        for index in range(count):
            service.create(make_payload(name=f"item {index}", is_available=index % 2 == 0))

    with Store.open(store_path, bucket_size_pages=1) as store:
        service = ItemService(store)
        items = service.list_all()
        assert [item.id for item in items] == list(range(1, count + 1))
        assert len(service.list_available()) == count // 2
        assert store.stats()["records"] == count
        assert store.stats()["counter"] == count


def test_store_file_is_exclusive(store_path: Path):
    with Store.open(store_path):
        with pytest.raises(StoreLockedError):
            Store.open(store_path)


def test_foreign_file_is_rejected(store_path: Path):
    store_path.parent.mkdir(parents=True)
    store_path.write_bytes(b"not a store".ljust(64 * 1024, b"\x00"))
    with pytest.raises(CorruptRegionError):
        Store.open(store_path)
    # The failed open released the file.
    store_path.unlink()
    Store.open(store_path).close()


def test_updated_at_does_not_go_backwards_when_clock_steps_back(store_path: Path, make_payload):
    with Store.open(store_path) as store:
        created = ItemService(store, clock=MonotonicClock(lambda: 2_000)).create(make_payload())

    with Store.open(store_path) as store:
        earlier = ItemService(store, clock=MonotonicClock(lambda: 1_000))
        marked = earlier.mark_unavailable(created.id)
        updated = earlier.update(created.id, make_payload(name="Box A2"))

    assert marked.created_at == created.created_at
    assert marked.updated_at > created.created_at
    assert updated.updated_at > marked.updated_at
