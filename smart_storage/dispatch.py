"""
Call dispatcher: the item operations exposed under their public method names.

Arguments and results are plain JSON-compatible values, so any transport (the
CLI, an HTTP shim, a message queue consumer) can sit in front of it.

Usage:
    from smart_storage.dispatch import Dispatcher

    dispatcher = Dispatcher(service)
    dispatcher.call("get_smart_storage_item", [1])
    # {"Ok": {"id": 1, ...}} or {"Err": {"NotFound": {"msg": "..."}}}

Every method is tagged `query` (read-only) or `update` (mutating) so hosts can
schedule or bill them differently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Sequence, Tuple

from pydantic import BaseModel, TypeAdapter

from smart_storage.domain.errors import ItemNotFoundError
from smart_storage.domain.models import U64, Error, StorageItemPayload
from smart_storage.services.items import ItemService
from smart_storage.utils.logging import get_logger

log = get_logger(__name__)

OperationKind = Literal["query", "update"]


@dataclass(frozen=True)
class Operation:
    """
    One callable method.

    Attributes
    ----------
    name : str
        Public method name.
    handler : str
        ItemService method that implements it.
    kind : str
        "query" for read-only methods, "update" for mutating ones.
    params : tuple
        Argument types, validated in order.
    returns_result : bool
        Whether the reply is wrapped as {"Ok": ...} / {"Err": ...}.
    """

    name: str
    handler: str
    kind: OperationKind
    params: Tuple[Any, ...]
    returns_result: bool
    description: str
    adapters: Tuple[TypeAdapter, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "adapters", tuple(TypeAdapter(param) for param in self.params))


_OPERATIONS: Tuple[Operation, ...] = (
    Operation("add_smart_storage_item", "create", "update", (StorageItemPayload,), False,
              "Create an item; returns it."),
    Operation("get_smart_storage_item", "get", "query", (U64,), True,
              "Fetch one item by id."),
    Operation("get_all_smart_storage_items", "list_all", "query", (), False,
              "All items in id order."),
    Operation("get_available_smart_storage_items", "list_available", "query", (), False,
              "Items marked available."),
    Operation("search_smart_storage_items", "search", "query", (str,), False,
              "Items whose name or description contains the query."),
    Operation("update_smart_storage_item", "update", "update", (U64, StorageItemPayload), True,
              "Replace the editable fields of an item."),
    Operation("is_item_available", "is_available", "query", (U64,), True,
              "Availability flag of an item."),
    Operation("mark_item_as_available", "mark_available", "update", (U64,), True,
              "Set an item available."),
    Operation("mark_item_as_unavailable", "mark_unavailable", "update", (U64,), True,
              "Set an item unavailable."),
    Operation("delete_smart_storage_item", "delete", "update", (U64,), True,
              "Remove an item; returns it."),
)


def _operation_registry() -> Dict[str, Operation]:
    """Registry of available operations."""
    return {operation.name: operation for operation in _OPERATIONS}


def available_operations() -> List[str]:
    """List available method names."""
    return sorted(_operation_registry().keys())


def resolve_operation(name: str) -> Operation:
    registry = _operation_registry()
    if name not in registry:
        raise ValueError(f"Unknown method '{name}'. Available: {', '.join(sorted(registry))}")
    return registry[name]


def _encode(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_encode(entry) for entry in value]
    return value


class Dispatcher:
    """Validates arguments, invokes the service and encodes the reply."""

    def __init__(self, service: ItemService) -> None:
        self._service = service

    def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        """
        Invoke `method` with JSON-compatible `args`.

        Raises
        ------
        ValueError
            Unknown method, wrong arity or invalid arguments.
        StorageFault
            Any fatal storage error; never converted into a result.
        """
        operation = resolve_operation(method)
        if len(args) != len(operation.params):
            raise ValueError(
                f"{method} takes {len(operation.params)} argument(s), got {len(args)}"
            )
        values = [
            adapter.validate_python(arg) for adapter, arg in zip(operation.adapters, args)
        ]
        log.debug(f"[CALL] {method}", extra={"method": method, "kind": operation.kind})

        handler = getattr(self._service, operation.handler)
        if not operation.returns_result:
            return _encode(handler(*values))
        try:
            return {"Ok": _encode(handler(*values))}
        except ItemNotFoundError as exc:
            log.info(f"[NOT FOUND] {method}", extra={"method": method, "item_id": exc.item_id})
            return {"Err": Error.not_found(exc.message).model_dump(mode="json")}


__all__ = [
    "Operation",
    "OperationKind",
    "Dispatcher",
    "available_operations",
    "resolve_operation",
]
