"""Tests for the SQLite/FTS5 catalog store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from leap.adapters.base.exceptions import ConfigurationError, QueryError, StoreConnectionError, StoreError
from leap.adapters.sqlite.store import SQLiteCatalogStore
from leap.models.item import Item


async def _titles(store: SQLiteCatalogStore, expression: str, limit: int = 100) -> list[str]:
    return [item.title for item in await store.match_ranked(expression, limit)]


class _BusyOnCommit:
    """Connection wrapper whose first COMMIT fails as if the database were locked."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self.failures = 1

    def execute(self, sql: str, *args: object) -> sqlite3.Cursor:
        if sql == "COMMIT" and self.failures:
            self.failures -= 1
            raise sqlite3.OperationalError("database is locked")
        return self._conn.execute(sql, *args)

    def __getattr__(self, name: str) -> object:
        return getattr(self._conn, name)


# ══════════════════════════════════════════════════════════════════════════════
# Lifecycle
# ══════════════════════════════════════════════════════════════════════════════


class TestLifecycle:
    def test_name(self) -> None:
        assert SQLiteCatalogStore().name == "sqlite"

    def test_invalid_tokenizer_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            SQLiteCatalogStore(tokenizer="trigram'); DROP TABLE items; --")

    async def test_use_before_initialize_fails(self) -> None:
        with pytest.raises(StoreConnectionError):
            await SQLiteCatalogStore().count()

    async def test_initialize_is_idempotent(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="a", title="keep", url="https://keep.example"))
        await store.initialize()
        assert await store.count() == 1

    async def test_file_database_persists(self, tmp_path: Path, sample_items: list[Item]) -> None:
        db_path = tmp_path / "nested" / "leap.db"

        first = SQLiteCatalogStore(database_path=str(db_path))
        await first.initialize()
        await first.upsert_many(sample_items)
        await first.shutdown()

        second = SQLiteCatalogStore(database_path=str(db_path))
        await second.initialize()
        try:
            assert await second.count() == len(sample_items)
            assert await _titles(second, "playground") == ["Go Playground"]
        finally:
            await second.shutdown()

    async def test_health(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)
        health = await store.health_check()
        assert health.status == "healthy"
        assert health.item_count == len(sample_items)
        assert health.last_check is not None

    async def test_health_before_initialize(self) -> None:
        health = await SQLiteCatalogStore().health_check()
        assert health.status == "unhealthy"


# ══════════════════════════════════════════════════════════════════════════════
# Mutations
# ══════════════════════════════════════════════════════════════════════════════


class TestMutations:
    async def test_upsert_replaces_by_identity(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="perl", title="docs", url="https://old.example", tags="old"))
        await store.upsert(Item(file="perl", title="docs", url="https://new.example", subtitle="fresh"))

        assert await store.count() == 1
        item = await store.get("perl", "docs")
        assert item is not None
        assert item.url == "https://new.example"
        assert item.subtitle == "fresh"
        assert item.tags is None

    async def test_upsert_keeps_index_in_step(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="perl", title="docs", url="https://x.example", tags="camel"))
        await store.upsert(Item(file="perl", title="docs", url="https://x.example", tags="onion"))

        assert await _titles(store, "camel") == []
        assert await _titles(store, "onion") == ["docs"]

    async def test_same_title_in_different_files(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="perl", title="docs", url="https://perl.example"))
        await store.upsert(Item(file="go", title="docs", url="https://go.example"))
        assert await store.count() == 2

    async def test_upsert_many_counts_written_items(
        self, store: SQLiteCatalogStore, sample_items: list[Item]
    ) -> None:
        assert await store.upsert_many(sample_items) == len(sample_items)
        assert await store.upsert_many([]) == 0

    async def test_delete(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)

        assert await store.delete("perl", "perldoc") is True
        assert await store.get("perl", "perldoc") is None
        assert await _titles(store, "perldoc") == []
        assert await store.delete("perl", "perldoc") is False

    async def test_failed_write_rolls_back(self, store: SQLiteCatalogStore) -> None:
        await store._run(lambda: store._require_conn().execute("DROP TABLE items_fts"))
        with pytest.raises(Exception):
            await store.upsert(Item(file="a", title="b", url="https://c.example"))
        assert await store.count() == 0

    async def test_failed_commit_leaves_connection_usable(self, store: SQLiteCatalogStore) -> None:
        real = store._conn
        store._conn = _BusyOnCommit(real)
        try:
            with pytest.raises(StoreError):
                await store.upsert(Item(file="a", title="lost", url="https://lost.example"))
        finally:
            store._conn = real
        assert not real.in_transaction
        await store.upsert(Item(file="a", title="kept", url="https://kept.example"))
        assert [i.title for i in await store.list_all()] == ["kept"]


# ══════════════════════════════════════════════════════════════════════════════
# Reads and search
# ══════════════════════════════════════════════════════════════════════════════


class TestReads:
    async def test_list_all_is_ordered(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)
        assert [i.uid for i in await store.list_all()] == [
            "go:Go Playground",
            "go:pkg.go.dev",
            "perl:MetaCPAN",
            "perl:perldoc",
        ]

    async def test_list_by_file(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)
        assert [i.title for i in await store.list_by_file("perl")] == ["MetaCPAN", "perldoc"]
        assert await store.list_by_file("missing") == []

    async def test_get_round_trips_optional_fields(
        self, store: SQLiteCatalogStore, sample_items: list[Item]
    ) -> None:
        await store.upsert_many(sample_items)
        assert await store.get("go", "pkg.go.dev") == sample_items[2]

    async def test_substring_match(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)
        assert await _titles(store, "cpan") == ["MetaCPAN"]

    async def test_match_covers_subtitle_and_tags(
        self, store: SQLiteCatalogStore, sample_items: list[Item]
    ) -> None:
        await store.upsert_many(sample_items)
        assert await _titles(store, "documentation") == ["perldoc"]
        assert sorted(await _titles(store, "modules")) == ["MetaCPAN", "pkg.go.dev"]

    async def test_url_is_not_searchable(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="x", title="shortcut", url="https://hidden-host.example"))
        assert await _titles(store, "hidden") == []

    async def test_limit(self, store: SQLiteCatalogStore) -> None:
        await store.upsert_many([Item(file="f", title=f"item {n}", url=f"https://{n}.example") for n in range(10)])
        assert len(await store.match_ranked("item", 3)) == 3

    async def test_column_filter(self, store: SQLiteCatalogStore, sample_items: list[Item]) -> None:
        await store.upsert_many(sample_items)
        assert await _titles(store, "file:perl doc") == ["perldoc"]

    async def test_invalid_expression_raises_query_error(self, store: SQLiteCatalogStore) -> None:
        with pytest.raises(QueryError):
            await store.match_ranked("nosuchcolumn:perl", 10)

    async def test_results_are_ranked_best_first(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(
            Item(
                file="notes",
                title="weak",
                subtitle="a long list of words that mentions rust once among many other unrelated words",
                url="https://weak.example",
            )
        )
        await store.upsert(
            Item(file="lang", title="rust", subtitle="rust language", tags="rust", url="https://rust.example")
        )
        assert await _titles(store, "rust") == ["rust", "weak"]


# ══════════════════════════════════════════════════════════════════════════════
# Index maintenance
# ══════════════════════════════════════════════════════════════════════════════


class TestRebuildIndex:
    async def test_rebuild_recovers_from_drift(
        self, store: SQLiteCatalogStore, sample_items: list[Item]
    ) -> None:
        await store.upsert_many(sample_items)
        await store._run(lambda: store._require_conn().execute("DELETE FROM items_fts"))
        assert await _titles(store, "perldoc") == []

        assert await store.rebuild_index() == len(sample_items)
        assert await _titles(store, "perldoc") == ["perldoc"]

    async def test_rebuild_drops_stale_rows(self, store: SQLiteCatalogStore) -> None:
        await store.upsert(Item(file="a", title="fresh", url="https://a.example"))
        await store._run(
            lambda: store._require_conn().execute(
                "INSERT INTO items_fts (rowid, file, title, url) VALUES (999, 'a', 'stale', 'https://gone.example')"
            )
        )
        assert await _titles(store, "stale") == ["stale"]

        assert await store.rebuild_index() == 1
        assert await _titles(store, "stale") == []
