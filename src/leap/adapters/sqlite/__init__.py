"""SQLite catalog store with an FTS5 search index."""

from leap.adapters.sqlite.store import SQLiteCatalogStore

__all__ = ["SQLiteCatalogStore"]
