"""SQLite catalog store — Item table plus an FTS5 index kept in lockstep.

The authoritative ``items`` table is keyed by ``(file, title)``. The
``items_fts`` virtual table mirrors ``file, title, subtitle, tags`` (and
carries ``url`` unindexed) under the same rowid. Every mutation touches both
tables inside one ``BEGIN IMMEDIATE`` transaction, so the index can only
drift if someone writes to the database behind the store's back; use
``rebuild_index()`` to recover from that.

The default ``trigram`` tokenizer matches any substring of three or more
characters. Ranking uses FTS5's built-in ``bm25`` (``ORDER BY rank``).

Usage::

    store = SQLiteCatalogStore(database_path="leap.db")
    await store.initialize()
    await store.upsert(Item(file="go", title="pkg.go.dev", url="https://pkg.go.dev"))
    rows = await store.match_ranked("pkg", limit=100)
"""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from leap.adapters.base.exceptions import ConfigurationError, QueryError, StoreConnectionError, StoreError
from leap.adapters.base.store import CatalogStore, StoreHealth
from leap.models.item import Item

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

_MEMORY = ":memory:"
_TOKENIZER_RE = re.compile(r"^[\w ]+$")

# Messages SQLite uses when an FTS5 expression itself is at fault.
_QUERY_ERROR_MARKERS = ("fts5", "syntax error", "no such column", "unterminated string", "unknown special query")

_COLUMNS = "file, title, subtitle, url, tags"


def _schema_sql(tokenizer: str) -> str:
    return f"""
CREATE TABLE IF NOT EXISTS items (
    id       INTEGER PRIMARY KEY,
    file     TEXT NOT NULL,
    title    TEXT NOT NULL,
    subtitle TEXT,
    url      TEXT NOT NULL,
    tags     TEXT,
    UNIQUE (file, title)
);

CREATE VIRTUAL TABLE IF NOT EXISTS items_fts USING fts5(
    file,
    title,
    subtitle,
    tags,
    url UNINDEXED,
    tokenize = '{tokenizer}'
);
"""


class SQLiteCatalogStore(CatalogStore):
    """Catalog store backed by SQLite and FTS5.

    One connection handles all writes, guarded by a lock. For file
    databases each worker thread gets its own read connection, so searches
    run concurrently under WAL. An in-memory database cannot be shared
    between connections, so there reads go through the write connection.

    Args:
        database_path: Path to the database file, or ``":memory:"``.
        tokenizer: FTS5 tokenizer specification, e.g. ``"trigram"``.
        **kwargs: Extra keyword arguments stored for future use.
    """

    def __init__(
        self,
        database_path: str = _MEMORY,
        tokenizer: str = "trigram",
        **kwargs: Any,
    ) -> None:
        if not _TOKENIZER_RE.match(tokenizer):
            raise ConfigurationError(f"Invalid FTS5 tokenizer specification: {tokenizer!r}")
        self._database_path = database_path
        self._tokenizer = tokenizer
        self._extra_kwargs = kwargs
        self._conn: sqlite3.Connection | None = None
        self._write_lock = threading.Lock()
        self._local = threading.local()
        self._readers: list[sqlite3.Connection] = []
        self._readers_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def _in_memory(self) -> bool:
        return self._database_path == _MEMORY

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open the database and create the schema. No-op when already open."""
        if self._conn is not None:
            return
        await asyncio.to_thread(self._open)
        logger.info(
            "Opened catalog database at %s (tokenizer: %s)",
            self._database_path,
            self._tokenizer,
        )

    def _open(self) -> None:
        if not self._in_memory:
            Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = self._connect()
            if not self._in_memory:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_schema_sql(self._tokenizer))
        except sqlite3.Error as e:
            raise StoreConnectionError(f"Failed to open catalog database {self._database_path}: {e}") from e
        self._conn = conn

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._database_path,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    async def shutdown(self) -> None:
        """Close every connection."""
        with self._readers_lock:
            for reader in self._readers:
                reader.close()
            self._readers.clear()
        self._local = threading.local()
        if self._conn:
            self._conn.close()
            self._conn = None

    # ── Connection helpers ───────────────────────────────────────────────

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Catalog store not initialized.")
        return self._conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._require_conn()
        with self._write_lock:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._require_conn()
        if self._in_memory:
            with self._write_lock:
                yield conn
            return

        reader: sqlite3.Connection | None = getattr(self._local, "conn", None)
        if reader is None:
            reader = self._connect()
            self._local.conn = reader
            with self._readers_lock:
                self._readers.append(reader)
        yield reader

    async def _run(self, fn: Callable[[], _T]) -> _T:
        try:
            return await asyncio.to_thread(fn)
        except StoreError:
            raise
        except sqlite3.Error as e:
            raise StoreError(f"Catalog database error: {e}") from e

    # ── Mutations ────────────────────────────────────────────────────────

    async def upsert(self, item: Item) -> None:
        await self.upsert_many([item])

    async def upsert_many(self, items: list[Item]) -> int:
        """Upsert every item in one transaction."""

        def _write() -> int:
            with self._transaction() as conn:
                for item in items:
                    self._upsert_row(conn, item)
            return len(items)

        written = await self._run(_write)
        logger.debug("Upserted %d item(s)", written)
        return written

    @staticmethod
    def _upsert_row(conn: sqlite3.Connection, item: Item) -> None:
        values = (item.file, item.title, item.subtitle, item.url, item.tags)
        conn.execute(
            f"""
            INSERT INTO items ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (file, title) DO UPDATE SET
                subtitle = excluded.subtitle,
                url = excluded.url,
                tags = excluded.tags
            """,
            values,
        )
        row_id = conn.execute(
            "SELECT id FROM items WHERE file = ? AND title = ?",
            (item.file, item.title),
        ).fetchone()[0]
        conn.execute("DELETE FROM items_fts WHERE rowid = ?", (row_id,))
        conn.execute(
            f"INSERT INTO items_fts (rowid, {_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (row_id, *values),
        )

    async def delete(self, file: str, title: str) -> bool:
        def _write() -> bool:
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT id FROM items WHERE file = ? AND title = ?",
                    (file, title),
                ).fetchone()
                if row is None:
                    return False
                conn.execute("DELETE FROM items_fts WHERE rowid = ?", (row["id"],))
                conn.execute("DELETE FROM items WHERE id = ?", (row["id"],))
                return True

        deleted = await self._run(_write)
        if deleted:
            logger.debug("Deleted item %s:%s", file, title)
        return deleted

    async def rebuild_index(self) -> int:
        """Drop every index row and re-derive them from the item table."""

        def _write() -> int:
            with self._transaction() as conn:
                conn.execute("DELETE FROM items_fts")
                conn.execute(f"INSERT INTO items_fts (rowid, {_COLUMNS}) SELECT id, {_COLUMNS} FROM items")
                conn.execute("INSERT INTO items_fts (items_fts) VALUES ('optimize')")
                return conn.execute("SELECT COUNT(*) FROM items_fts").fetchone()[0]

        indexed = await self._run(_write)
        logger.info("Rebuilt search index: %d rows", indexed)
        return indexed

    # ── Reads ────────────────────────────────────────────────────────────

    async def get(self, file: str, title: str) -> Item | None:
        def _read() -> Item | None:
            with self._reader() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM items WHERE file = ? AND title = ?",
                    (file, title),
                ).fetchone()
            return _row_to_item(row) if row else None

        return await self._run(_read)

    async def list_all(self) -> list[Item]:
        return await self._select(f"SELECT {_COLUMNS} FROM items ORDER BY file, title", ())

    async def list_by_file(self, file: str) -> list[Item]:
        return await self._select(f"SELECT {_COLUMNS} FROM items WHERE file = ? ORDER BY title", (file,))

    async def count(self) -> int:
        def _read() -> int:
            with self._reader() as conn:
                return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]

        return await self._run(_read)

    async def _select(self, sql: str, params: tuple[Any, ...]) -> list[Item]:
        def _read() -> list[Item]:
            with self._reader() as conn:
                rows = conn.execute(sql, params).fetchall()
            return [_row_to_item(row) for row in rows]

        return await self._run(_read)

    # ── Search ───────────────────────────────────────────────────────────

    async def match_ranked(self, expression: str, limit: int) -> list[Item]:
        """Run an FTS5 MATCH ordered by bm25 rank (best first)."""

        def _read() -> list[Item]:
            with self._reader() as conn:
                try:
                    rows = conn.execute(
                        f"""
                        SELECT {_COLUMNS} FROM items_fts
                        WHERE items_fts MATCH ?
                        ORDER BY rank
                        LIMIT ?
                        """,
                        (expression, limit),
                    ).fetchall()
                except sqlite3.OperationalError as e:
                    message = str(e).lower()
                    if any(marker in message for marker in _QUERY_ERROR_MARKERS):
                        raise QueryError(f"Invalid search expression {expression!r}: {e}") from e
                    raise
            return [_row_to_item(row) for row in rows]

        return await self._run(_read)

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> StoreHealth:
        """Check that the database answers queries."""
        if self._conn is None:
            return StoreHealth(status="unhealthy", message="Store not initialized")

        try:
            start = time.monotonic()
            item_count = await self.count()
            latency_ms = int((time.monotonic() - start) * 1000)
            return StoreHealth(
                status="healthy",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                item_count=item_count,
                message=f"Database: {self._database_path}",
            )
        except Exception as e:
            return StoreHealth(status="unhealthy", message=str(e))


def _row_to_item(row: sqlite3.Row) -> Item:
    return Item(
        file=row["file"],
        title=row["title"],
        subtitle=row["subtitle"],
        url=row["url"],
        tags=row["tags"],
    )
