"""Tests for the CLI maintenance and serve commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from leap.adapters.sqlite.store import SQLiteCatalogStore
from leap.cli import _maintain, main
from leap.config.settings import Settings


@pytest.fixture
def file_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        storage={"database_path": str(tmp_path / "leap.db")},
        fallback={"enable_host_lookup": False},
    )


async def _count(settings: Settings) -> int:
    store = SQLiteCatalogStore(database_path=settings.storage.database_path)
    await store.initialize()
    try:
        return await store.count()
    finally:
        await store.shutdown()


class TestMaintenance:
    async def test_import(self, file_settings: Settings, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source = tmp_path / "bookmarks.json"
        source.write_text(
            json.dumps(
                [
                    {"file": "perl", "title": "perldoc", "url": "https://perldoc.perl.org"},
                    {"file": "go", "title": "pkg.go.dev", "url": "https://pkg.go.dev"},
                ]
            )
        )

        assert await _maintain(file_settings, str(source), rebuild=False) == 0
        assert await _count(file_settings) == 2
        assert "Imported 2 item(s)" in capsys.readouterr().out

    async def test_invalid_import_writes_nothing(
        self, file_settings: Settings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "bookmarks.json"
        source.write_text(json.dumps([{"file": "perl", "title": "perldoc"}]))

        assert await _maintain(file_settings, str(source), rebuild=False) == 1
        assert await _count(file_settings) == 0
        assert "[0] url" in capsys.readouterr().err

    async def test_unreadable_import(self, file_settings: Settings, tmp_path: Path) -> None:
        assert await _maintain(file_settings, str(tmp_path / "missing.json"), rebuild=False) == 1

    async def test_rebuild(self, file_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        assert await _maintain(file_settings, None, rebuild=True) == 0
        assert "Rebuilt search index: 0 row(s)" in capsys.readouterr().out


class TestServe:
    def test_overrides_reach_single_process_server(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        database = str(tmp_path / "served.db")
        monkeypatch.setattr(sys, "argv", ["leap", "--database", database, "--port", "9191", "--log-level", "debug"])

        with (
            patch("leap.observability.logging.setup_logging") as setup_logging,
            patch("leap.api.app.create_app") as create_app,
            patch("uvicorn.run") as run,
        ):
            main()

        settings = create_app.call_args.args[0]
        assert settings.storage.database_path == database
        setup_logging.assert_called_once_with(settings.observability)
        assert run.call_args.args[0] is create_app.return_value
        assert run.call_args.kwargs["port"] == 9191
        assert run.call_args.kwargs["log_level"] == "debug"

    def test_multiple_workers_use_the_app_factory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["leap", "--workers", "2"])

        with patch("leap.observability.logging.setup_logging"), patch("uvicorn.run") as run:
            main()

        assert run.call_args.args[0] == "leap.api.app:create_app"
        assert run.call_args.kwargs["factory"] is True
        assert run.call_args.kwargs["workers"] == 2
