"""
Utilities package for Smart Storage.

Exports shared helpers for logging and timestamps.
Keep this package lightweight and free of storage logic.
"""

from smart_storage.utils.clock import Clock, MonotonicClock
from smart_storage.utils.logging import configure_logging, get_logger

__all__ = [
    "Clock",
    "MonotonicClock",
    "configure_logging",
    "get_logger",
]
