"""
Demo data seeding for Smart Storage.

Generates deterministic pseudo-random item payloads and inserts them through
the item service, so ids, counter and table end up exactly as a real client
would leave them.
"""

from __future__ import annotations

import random
import sys
import time
from pathlib import Path
from typing import List, Optional

import typer

from smart_storage.config import get_settings
from smart_storage.domain.models import StorageItem, StorageItemPayload
from smart_storage.infrastructure.store import Store
from smart_storage.infrastructure.store_factory import get_item_service
from smart_storage.services.items import ItemService
from smart_storage.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Seed a store with generated storage items.")
log = get_logger(__name__)

_CONTAINERS = ["Box", "Crate", "Bin", "Drawer", "Case"]
_CONTENTS = [
    "spare parts",
    "cables and adapters",
    "hand tools",
    "seasonal decorations",
    "camping gear",
    "printer supplies",
]
_PLACES = ["Shelf", "Rack", "Cabinet", "Loft", "Garage bay"]


def _generate_payloads(count: int, seed: int) -> List[StorageItemPayload]:
    rng = random.Random(seed)
    payloads: List[StorageItemPayload] = []
    for index in range(count):
        container = rng.choice(_CONTAINERS)
        payloads.append(
            StorageItemPayload(
                name=f"{container} {chr(ord('A') + index % 26)}{index // 26 or ''}",
                description=rng.choice(_CONTENTS),
                location=f"{rng.choice(_PLACES)} {rng.randint(1, 12)}",
                is_available=rng.random() >= 0.25,
            )
        )
    return payloads


def _seed_store(service: ItemService, payloads: List[StorageItemPayload]) -> List[StorageItem]:
    return [service.create(payload) for payload in payloads]


@app.command()
def main(
    count: int = typer.Option(20, "--count", "-c", min=1, help="Items to create."),
    seed: int = typer.Option(42, "--seed", help="RNG seed."),
    store_path: Optional[Path] = typer.Option(
        None, "--store", help="Store file (default from settings)."
    ),
) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    payloads = _generate_payloads(count, seed)

    start = time.perf_counter()
    if store_path is not None:
        with Store.open(store_path) as store:
            created = _seed_store(ItemService(store), payloads)
    else:
        created = _seed_store(get_item_service(), payloads)
    elapsed = time.perf_counter() - start

    log.info(
        "Seeded store",
        extra={"items": len(created), "first_id": created[0].id, "last_id": created[-1].id},
    )
    typer.echo(f"Created {len(created)} items (ids {created[0].id}-{created[-1].id}) in {elapsed:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
