from pathlib import Path

from rich.console import Console
from typer.testing import CliRunner

from scripts import seed_data
from smart_storage import config
from smart_storage.dispatch import available_operations
from smart_storage.reporter import format_timestamp, print_items


def test_settings_defaults(monkeypatch):
    for name in ("STORE_PATH", "STORE_BUCKET_SIZE_PAGES", "LOG_LEVEL", "LOG_JSON", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)
    settings = config.Settings(_env_file=None)
    assert settings.store_path == Path("data/smart_storage.mem")
    assert settings.store_bucket_size_pages == 16
    assert settings.log_level == "INFO"
    assert settings.log_json is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("STORE_PATH", "/tmp/other.mem")
    monkeypatch.setenv("STORE_BUCKET_SIZE_PAGES", "4")
    settings = config.Settings(_env_file=None)
    assert settings.store_path == Path("/tmp/other.mem")
    assert settings.store_bucket_size_pages == 4


def test_available_operations_contains_known_entries():
    names = available_operations()
    assert "get_smart_storage_item" in names
    assert isinstance(names, list)
    assert len(names) == 10


def test_seed_payloads_are_deterministic():
    first = seed_data._generate_payloads(5, seed=123)
    second = seed_data._generate_payloads(5, seed=123)
    assert first == second
    assert len(first) == 5
    assert first[0].name.split()[-1] == "A"


def test_seed_store_creates_items(service):
    created = seed_data._seed_store(service, seed_data._generate_payloads(3, seed=1))
    assert [item.id for item in created] == [1, 2, 3]
    assert service.list_all() == created


def test_format_timestamp():
    assert format_timestamp(None) == "-"
    assert format_timestamp(0) == "1970-01-01T00:00:00+00:00"


def test_print_items_renders_rows():
    console = Console(record=True, width=200)
    print_items(
        [
            {"id": 2, "name": "Box [B]", "description": "d", "location": "l",
             "created_at": 0, "updated_at": None, "is_available": False},
            {"id": 1, "name": "Box A", "description": "d", "location": "l",
             "created_at": 0, "updated_at": 0, "is_available": True},
        ],
        console=console,
    )
    text = console.export_text()
    assert "Box [B]" in text
    assert text.index("Box A") < text.index("Box [B]")
    assert "2 item(s), 1 available" in text


def test_print_items_empty():
    console = Console(record=True)
    print_items([], console=console)
    assert "No items." in console.export_text()


def test_seed_script_uses_configured_logging(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_JSON", "true")
    config.get_settings.cache_clear()
    calls = []
    monkeypatch.setattr(seed_data, "configure_logging", lambda **kwargs: calls.append(kwargs))
    try:
        result = CliRunner().invoke(
            seed_data.app, ["--count", "2", "--store", str(tmp_path / "seed.mem")]
        )
    finally:
        config.get_settings.cache_clear()

    assert result.exit_code == 0, result.output
    assert calls == [{"level": "DEBUG", "json_logs": True}]
    assert "Created 2 items" in result.stdout
