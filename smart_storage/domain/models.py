"""
Domain models for Smart Storage.

`StorageItem` is the persisted record. `StorageItemPayload` is what callers
send to create or update one; the server assigns the id and both timestamps.
`Error` mirrors the tagged error result returned across the call boundary.
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, Field

U64_MAX = 2**64 - 1

U64 = Annotated[int, Field(ge=0, le=U64_MAX)]


class StorageItem(BaseModel):
    """
    A single stored item.

    Field order is part of the serialized form; append new fields at the end.
    """

    id: U64 = Field(..., description="Unique id allocated by the durable counter.")
    name: str = Field(..., description="Display name.")
    description: str = Field(..., description="Free-form description.")
    location: str = Field(..., description="Where the item is kept.")
    created_at: U64 = Field(..., description="Creation time, ns since epoch.")
    updated_at: Optional[U64] = Field(None, description="Last modification time, ns since epoch.")
    is_available: bool = Field(..., description="Whether the item can be taken.")

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "strict": False,
    }


class StorageItemPayload(BaseModel):
    """
    Caller-supplied fields for create and update requests.
    """

    name: str
    description: str
    location: str
    is_available: bool

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


class NotFoundDetail(BaseModel):
    msg: str


class Error(BaseModel):
    """Tagged error result. `NotFound` is the only variant."""

    NotFound: NotFoundDetail

    @classmethod
    def not_found(cls, msg: str) -> "Error":
        return cls(NotFound=NotFoundDetail(msg=msg))


__all__ = [
    "U64",
    "U64_MAX",
    "StorageItem",
    "StorageItemPayload",
    "NotFoundDetail",
    "Error",
]
