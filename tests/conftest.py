"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi.testclient import TestClient

from leap.adapters.sqlite.store import SQLiteCatalogStore
from leap.api.app import create_app
from leap.config.settings import Settings
from leap.core.engine import LeapEngine
from leap.models.item import Item


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance: in-memory catalog, no DNS lookups."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        storage={"database_path": ":memory:"},
        fallback={"enable_host_lookup": False},
        observability={"log_format": "console"},
    )


@pytest.fixture
def sample_items() -> list[Item]:
    """A small catalog spread over two files."""
    return [
        Item(file="perl", title="perldoc", subtitle="Perl documentation", url="https://perldoc.perl.org", tags="docs"),
        Item(file="perl", title="MetaCPAN", url="https://metacpan.org", tags="modules registry"),
        Item(file="go", title="pkg.go.dev", subtitle="Go packages", url="https://pkg.go.dev", tags="docs modules"),
        Item(file="go", title="Go Playground", url="https://go.dev/play"),
    ]


@pytest.fixture
async def store() -> AsyncIterator[SQLiteCatalogStore]:
    """An initialized, empty in-memory catalog store."""
    catalog = SQLiteCatalogStore(database_path=":memory:")
    await catalog.initialize()
    yield catalog
    await catalog.shutdown()


@pytest.fixture
async def engine(settings: Settings) -> AsyncIterator[LeapEngine]:
    """An initialized engine over an empty in-memory catalog."""
    leap_engine = LeapEngine(settings)
    await leap_engine.initialize()
    yield leap_engine
    await leap_engine.shutdown()


@pytest.fixture
def client(settings: Settings, sample_items: list[Item]) -> Iterator[TestClient]:
    """TestClient over a running app whose catalog holds ``sample_items``."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        resp = test_client.post(
            "/v1/items/batch",
            json=[item.model_dump() for item in sample_items],
        )
        assert resp.status_code == 200
        yield test_client
