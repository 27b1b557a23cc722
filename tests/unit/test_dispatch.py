from __future__ import annotations

import pytest
from pydantic import ValidationError

from smart_storage.dispatch import Dispatcher, available_operations, resolve_operation
from smart_storage.services.items import ItemService

PAYLOAD = {
    "name": "Box A",
    "description": "spare parts",
    "location": "Shelf 1",
    "is_available": True,
}

QUERY_METHODS = {
    "get_smart_storage_item",
    "get_all_smart_storage_items",
    "get_available_smart_storage_items",
    "search_smart_storage_items",
    "is_item_available",
}
UPDATE_METHODS = {
    "add_smart_storage_item",
    "update_smart_storage_item",
    "mark_item_as_available",
    "mark_item_as_unavailable",
    "delete_smart_storage_item",
}


@pytest.fixture
def dispatcher(service: ItemService) -> Dispatcher:
    return Dispatcher(service)


def test_every_method_is_tagged_query_or_update():
    assert set(available_operations()) == QUERY_METHODS | UPDATE_METHODS
    for name in QUERY_METHODS:
        assert resolve_operation(name).kind == "query"
    for name in UPDATE_METHODS:
        assert resolve_operation(name).kind == "update"


def test_add_returns_plain_item(dispatcher: Dispatcher):
    created = dispatcher.call("add_smart_storage_item", [PAYLOAD])
    assert created["id"] == 1
    assert created["updated_at"] is None
    assert created["name"] == "Box A"


def test_result_methods_wrap_ok(dispatcher: Dispatcher):
    dispatcher.call("add_smart_storage_item", [PAYLOAD])
    assert dispatcher.call("get_smart_storage_item", [1])["Ok"]["name"] == "Box A"
    assert dispatcher.call("is_item_available", [1]) == {"Ok": True}
    assert dispatcher.call("mark_item_as_unavailable", [1])["Ok"]["is_available"] is False


def test_not_found_becomes_err_value(dispatcher: Dispatcher):
    reply = dispatcher.call("delete_smart_storage_item", [7])
    assert reply == {
        "Err": {"NotFound": {"msg": "couldn't delete an item with id=7. item not found"}}
    }


def test_list_methods_return_plain_lists(dispatcher: Dispatcher):
    dispatcher.call("add_smart_storage_item", [PAYLOAD])
    dispatcher.call("add_smart_storage_item", [{**PAYLOAD, "name": "Box B", "is_available": False}])
    assert [item["id"] for item in dispatcher.call("get_all_smart_storage_items")] == [1, 2]
    assert [item["id"] for item in dispatcher.call("get_available_smart_storage_items")] == [1]
    assert [item["id"] for item in dispatcher.call("search_smart_storage_items", ["Box B"])] == [2]


def test_update_takes_id_and_payload(dispatcher: Dispatcher):
    dispatcher.call("add_smart_storage_item", [PAYLOAD])
    reply = dispatcher.call("update_smart_storage_item", [1, {**PAYLOAD, "location": "Shelf 2"}])
    assert reply["Ok"]["location"] == "Shelf 2"
    assert reply["Ok"]["updated_at"] is not None


def test_unknown_method(dispatcher: Dispatcher):
    with pytest.raises(ValueError, match="Unknown method"):
        dispatcher.call("drop_everything")


def test_wrong_arity(dispatcher: Dispatcher):
    with pytest.raises(ValueError, match="takes 1 argument"):
        dispatcher.call("get_smart_storage_item", [])


@pytest.mark.parametrize(
    "method,args",
    [
        ("get_smart_storage_item", [-1]),
        ("get_smart_storage_item", [2**64]),
        ("add_smart_storage_item", [{"name": "no other fields"}]),
        ("add_smart_storage_item", [{**PAYLOAD, "id": 5}]),
    ],
)
def test_invalid_arguments_are_rejected(dispatcher: Dispatcher, method, args):
    with pytest.raises(ValidationError):
        dispatcher.call(method, args)


def test_argument_adapters_are_built_once_per_operation():
    operation = resolve_operation("update_smart_storage_item")
    assert len(operation.adapters) == len(operation.params) == 2
    assert resolve_operation("update_smart_storage_item").adapters is operation.adapters
    assert resolve_operation("get_all_smart_storage_items").adapters == ()
