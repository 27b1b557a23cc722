from __future__ import annotations

from smart_storage.utils.clock import MonotonicClock


def test_clock_passes_through_advancing_time():
    readings = iter([10, 20, 30])
    clock = MonotonicClock(source=lambda: next(readings))
    assert [clock(), clock(), clock()] == [10, 20, 30]


def test_clock_never_repeats_or_goes_backwards():
    readings = iter([100, 100, 50, 101, 500])
    clock = MonotonicClock(source=lambda: next(readings))
    assert [clock() for _ in range(5)] == [100, 101, 102, 103, 500]


def test_default_source_is_wall_clock_nanoseconds():
    # Any date after 2020 in ns.
    assert MonotonicClock()() > 1_577_836_800 * 10**9
