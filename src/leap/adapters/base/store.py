"""Base catalog store — Abstract interface for bookmark persistence and ranked search.

Every store backend must implement this interface. The store is responsible
for:
  1. Keeping the authoritative item table, keyed by ``(file, title)``
  2. Keeping a full-text index over ``file, title, subtitle, tags`` in
     lockstep with every mutation, in the same transaction
  3. Executing ranked full-text matches against that index
  4. Reporting health status
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from leap.models.item import Item


class StoreHealth(BaseModel):
    """Health status of a catalog store."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    item_count: int = Field(default=0, description="Number of items in the catalog")
    message: str | None = Field(default=None, description="Additional health message")


class CatalogStore(ABC):
    """Abstract base class for catalog stores.

    Writers are serialized and each mutation is a single transaction that
    updates both the item table and its index. Readers may run concurrently
    with each other.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique store name (e.g., 'sqlite')."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and create the schema if needed.

        Called once during application startup.
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Release connections. Called during application shutdown."""

    @abstractmethod
    async def upsert(self, item: Item) -> None:
        """Insert an item, or replace subtitle/url/tags of the existing one."""

    @abstractmethod
    async def upsert_many(self, items: list[Item]) -> int:
        """Upsert a batch in one transaction; all or nothing.

        Returns:
            Number of items written.
        """

    @abstractmethod
    async def delete(self, file: str, title: str) -> bool:
        """Delete an item by identity.

        Returns:
            True if a row was removed.
        """

    @abstractmethod
    async def get(self, file: str, title: str) -> Item | None:
        """Fetch one item by identity."""

    @abstractmethod
    async def list_all(self) -> list[Item]:
        """All items, ordered by file then title."""

    @abstractmethod
    async def list_by_file(self, file: str) -> list[Item]:
        """Items of one file, ordered by title."""

    @abstractmethod
    async def count(self) -> int:
        """Number of items in the catalog."""

    @abstractmethod
    async def rebuild_index(self) -> int:
        """Regenerate the full-text index from the item table.

        Returns:
            Number of rows indexed.
        """

    @abstractmethod
    async def match_ranked(self, expression: str, limit: int) -> list[Item]:
        """Run a full-text expression and return rows best-first.

        Args:
            expression: Expression in the index's query syntax.
            limit: Maximum number of rows.

        Raises:
            QueryError: If the index rejects the expression.
            StoreConnectionError: If the store is unavailable.
        """

    @abstractmethod
    async def health_check(self) -> StoreHealth:
        """Check the health of the store."""
