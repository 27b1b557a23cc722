from __future__ import annotations

import pytest

from smart_storage.domain.errors import CorruptRegionError, CounterOverflowError
from smart_storage.domain.models import U64_MAX
from smart_storage.infrastructure.counter import DurableCounter
from smart_storage.infrastructure.memory import VolatileMemory
from smart_storage.infrastructure.regions import RegionAllocator


@pytest.fixture
def allocator() -> RegionAllocator:
    return RegionAllocator(VolatileMemory(), bucket_size_pages=1)


def test_counter_starts_at_zero_and_allocates_from_one(allocator):
    counter = DurableCounter(allocator.get(0))
    assert counter.get() == 0
    assert [counter.next_id() for _ in range(3)] == [1, 2, 3]
    assert counter.get() == 3


def test_peek_next_does_not_consume(allocator):
    counter = DurableCounter(allocator.get(0))
    assert counter.peek_next() == 1
    assert counter.peek_next() == 1
    assert counter.next_id() == 1


def test_counter_reloads_persisted_value(allocator):
    counter = DurableCounter(allocator.get(0))
    counter.next_id()
    counter.next_id()

    reloaded = DurableCounter(allocator.get(0), initial=100)
    assert reloaded.get() == 2
    assert reloaded.next_id() == 3


def test_initial_value_applies_only_to_a_fresh_region(allocator):
    counter = DurableCounter(allocator.get(0), initial=41)
    assert counter.next_id() == 42


def test_counter_refuses_to_wrap(allocator):
    counter = DurableCounter(allocator.get(0))
    counter.set(U64_MAX)
    with pytest.raises(CounterOverflowError):
        counter.next_id()
    assert counter.get() == U64_MAX


def test_counter_rejects_out_of_range_values(allocator):
    counter = DurableCounter(allocator.get(0))
    with pytest.raises(CounterOverflowError):
        counter.set(-1)
    with pytest.raises(CounterOverflowError):
        counter.set(U64_MAX + 1)


def test_foreign_bytes_in_counter_region_are_corruption(allocator):
    region = allocator.get(0)
    region.grow(1)
    region.write(0, b"SST\x01")
    with pytest.raises(CorruptRegionError):
        DurableCounter(region)
