from __future__ import annotations

import json
import sys
from typing import Any, List, Optional

import typer

from smart_storage.config import get_settings
from smart_storage.dispatch import Dispatcher, available_operations, resolve_operation
from smart_storage.domain.errors import StorageFault
from smart_storage.infrastructure.store_factory import get_item_service, get_store
from smart_storage.reporter import print_items
from smart_storage.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Smart Storage CLI.", no_args_is_help=True)
log = get_logger(__name__)


@app.callback()
def setup() -> None:
    """
    Persistent storage-item registry.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _run(method: str, args: List[Any], as_json: bool = True, title: str = "Storage Items") -> None:
    """
    Dispatch one call and print its reply.

    Exits 1 when the reply is an `Err`, 2 on invalid input or a storage fault.
    """
    try:
        operation = resolve_operation(method)
        result = Dispatcher(get_item_service()).call(method, args)
    except StorageFault as exc:
        log.exception(f"[FAULT] {method}", extra={"method": method})
        typer.echo(f"Storage fault: {exc}", err=True)
        raise typer.Exit(2) from exc
    except ValueError as exc:
        typer.echo(f"Invalid call: {exc}", err=True)
        raise typer.Exit(2) from exc

    if operation.returns_result:
        if "Err" in result:
            typer.echo(result["Err"]["NotFound"]["msg"], err=True)
            raise typer.Exit(1)
        result = result["Ok"]

    if isinstance(result, list) and not as_json:
        print_items(result, title=title)
    else:
        typer.echo(json.dumps(result, indent=2))


def _payload(name: str, description: str, location: str, available: bool) -> dict:
    return {
        "name": name,
        "description": description,
        "location": location,
        "is_available": available,
    }


@app.command()
def info() -> None:
    """
    Show effective configuration and store statistics.
    """
    settings = get_settings()
    stats = get_store().stats()
    typer.echo(
        f"store={settings.store_path} env={settings.app_env} | "
        f"items={stats['records']} last_id={stats['counter']} "
        f"buckets={stats['buckets_in_use']}x{stats['bucket_size_pages']} pages"
    )


@app.command()
def methods() -> None:
    """
    List callable methods with their query/update kind.
    """
    for name in available_operations():
        operation = resolve_operation(name)
        typer.echo(f"{name:<36} {operation.kind:<7} {operation.description}")


@app.command()
def call(
    method: str = typer.Argument(..., help="Method name (see `methods`)."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments, one JSON value each."),
) -> None:
    """
    Invoke a method by name with JSON arguments, printing the raw JSON reply.
    """
    try:
        decoded = [json.loads(arg) for arg in args or []]
    except json.JSONDecodeError as exc:
        typer.echo(f"Invalid JSON argument: {exc}", err=True)
        raise typer.Exit(2) from exc
    _run(method, decoded)


@app.command()
def add(
    name: str = typer.Option(..., "--name", "-n"),
    description: str = typer.Option("", "--description", "-d"),
    location: str = typer.Option("", "--location", "-l"),
    available: bool = typer.Option(True, "--available/--unavailable"),
) -> None:
    """
    Create an item.
    """
    _run("add_smart_storage_item", [_payload(name, description, location, available)])


@app.command()
def get(item_id: int = typer.Argument(..., min=0)) -> None:
    """
    Show one item.
    """
    _run("get_smart_storage_item", [item_id])


@app.command("list")
def list_items(
    available: bool = typer.Option(False, "--available", help="Only available items."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    List items in id order.
    """
    if available:
        _run("get_available_smart_storage_items", [], as_json=as_json, title="Available Items")
    else:
        _run("get_all_smart_storage_items", [], as_json=as_json)


@app.command()
def search(
    query: str = typer.Argument(..., help="Case-sensitive substring of name or description."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    Find items by name or description.
    """
    _run("search_smart_storage_items", [query], as_json=as_json, title=f"Search: {query}")


@app.command()
def update(
    item_id: int = typer.Argument(..., min=0),
    name: str = typer.Option(..., "--name", "-n"),
    description: str = typer.Option(..., "--description", "-d"),
    location: str = typer.Option(..., "--location", "-l"),
    available: bool = typer.Option(..., "--available/--unavailable"),
) -> None:
    """
    Replace the editable fields of an item.
    """
    _run("update_smart_storage_item", [item_id, _payload(name, description, location, available)])


@app.command("is-available")
def is_available(item_id: int = typer.Argument(..., min=0)) -> None:
    """
    Print whether an item is available.
    """
    _run("is_item_available", [item_id])


@app.command("mark-available")
def mark_available(item_id: int = typer.Argument(..., min=0)) -> None:
    """
    Mark an item available.
    """
    _run("mark_item_as_available", [item_id])


@app.command("mark-unavailable")
def mark_unavailable(item_id: int = typer.Argument(..., min=0)) -> None:
    """
    Mark an item unavailable.
    """
    _run("mark_item_as_unavailable", [item_id])


@app.command()
def delete(item_id: int = typer.Argument(..., min=0)) -> None:
    """
    Delete an item. Its id is never handed out again.
    """
    _run("delete_smart_storage_item", [item_id])


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
