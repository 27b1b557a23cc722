"""
Pytest configuration for Smart Storage.

Provides fixtures for:
- Volatile and file-backed stores
- A deterministic clock and payload factory
- Settings override for CLI tests
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator

import pytest

from smart_storage.config import get_settings
from smart_storage.domain.models import StorageItemPayload
from smart_storage.infrastructure.store import Store
from smart_storage.infrastructure.store_factory import StoreManager
from smart_storage.services.items import ItemService

CLOCK_START = 1_700_000_000_000_000_000
CLOCK_STEP = 1_000


class FakeClock:
    """Deterministic nanosecond clock advancing by a fixed step per reading."""

    def __init__(self, start: int = CLOCK_START, step: int = CLOCK_STEP) -> None:
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        self.now += self.step
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Generator[Store, None, None]:
    """
    In-memory store with one-page buckets so tests cross bucket boundaries.
    """
    store = Store.volatile(bucket_size_pages=1)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def service(store: Store, clock: FakeClock) -> ItemService:
    return ItemService(store, clock=clock)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Location for a file-backed store; the directory does not exist yet."""
    return tmp_path / "data" / "items.mem"


@pytest.fixture
def make_payload() -> Callable[..., StorageItemPayload]:
    def _make(**overrides) -> StorageItemPayload:
        fields = {
            "name": "Box A",
            "description": "spare parts",
            "location": "Shelf 1",
            "is_available": True,
        }
        fields.update(overrides)
        return StorageItemPayload(**fields)

    return _make


@pytest.fixture
def cli_store(monkeypatch: pytest.MonkeyPatch, store_path: Path) -> Generator[Path, None, None]:
    """
    Point settings at a temporary store and release the process-wide store after the test.
    """
    monkeypatch.setenv("STORE_PATH", str(store_path))
    monkeypatch.setenv("STORE_BUCKET_SIZE_PAGES", "1")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    StoreManager().close_all()
    get_settings.cache_clear()
    try:
        yield store_path
    finally:
        StoreManager().close_all()
        get_settings.cache_clear()
