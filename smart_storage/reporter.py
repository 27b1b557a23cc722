from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table


def format_timestamp(ns: Optional[int]) -> str:
    """Render nanoseconds since the epoch as ISO-8601 UTC, or "-" when absent."""
    if ns is None:
        return "-"
    return datetime.fromtimestamp(ns / 1_000_000_000, tz=timezone.utc).isoformat(timespec="seconds")


def print_items(
    items: List[Dict[str, Any]],
    title: str = "Storage Items",
    console: Optional[Console] = None,
) -> None:
    """
    Render encoded items as a rich table, ascending by id.
    """
    console = console or Console()

    if not items:
        console.print("[yellow]No items.[/yellow]")
        return

    available = sum(1 for item in items if item.get("is_available"))
    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"{len(items)} item(s), {available} available",
    )

    table.add_column("ID", justify="right", style="magenta", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Location", style="blue")
    table.add_column("Available", justify="center")
    table.add_column("Created (UTC)", style="green", no_wrap=True)
    table.add_column("Updated (UTC)", style="yellow", no_wrap=True)

    for item in sorted(items, key=lambda entry: entry["id"]):
        table.add_row(
            str(item["id"]),
            escape(item.get("name", "")),
            escape(item.get("description", "")),
            escape(item.get("location", "")),
            "[bold green]yes[/bold green]" if item.get("is_available") else "[red]no[/red]",
            format_timestamp(item.get("created_at")),
            format_timestamp(item.get("updated_at")),
        )

    console.print(table)
