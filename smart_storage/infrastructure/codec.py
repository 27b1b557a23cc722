"""
Bounded serialization of StorageItem records.

Records are stored as compact JSON in pydantic's field order. The size bound
is a class constant: the record table sizes its slots from it, so it must not
depend on what is being stored.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import ValidationError

from smart_storage.domain.errors import CorruptRegionError, RecordTooLargeError
from smart_storage.domain.models import StorageItem


class RecordCodec:
    MAX_SIZE: ClassVar[int] = 1024
    IS_FIXED_SIZE: ClassVar[bool] = False

    def encode(self, item: StorageItem) -> bytes:
        """
        Serialize `item`.

        Raises
        ------
        RecordTooLargeError
            If the encoding is longer than MAX_SIZE. Nothing is truncated.
        """
        data = item.model_dump_json().encode("utf-8")
        if len(data) > self.MAX_SIZE:
            raise RecordTooLargeError(len(data), self.MAX_SIZE)
        return data

    def decode(self, data: bytes) -> StorageItem:
        try:
            return StorageItem.model_validate_json(data)
        except ValidationError as exc:
            raise CorruptRegionError(f"stored record cannot be decoded: {exc}") from exc


__all__ = ["RecordCodec"]
