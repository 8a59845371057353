"""Leap Engine — Core orchestrator for query → ranked results → fallback.

The engine manages the request lifecycle:
  1. Query Compilation: raw text → FTS5 expression
  2. Search Execution: ranked match against the catalog index
  3. Fallback Resolution: synthetic suggestions when nothing matched
  4. Formatting is left to ``leap.core.formatter``; the engine only
     returns a ``SearchOutcome``

It also fronts the catalog management operations (upsert, batch import,
delete, index rebuild) so the API layer talks to one object.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import structlog

from leap.adapters.sqlite.store import SQLiteCatalogStore
from leap.core.batch import validate_batch
from leap.core.fallback import FallbackResolver
from leap.core.query import compile_query
from leap.models.response import IndexRebuildResponse, SearchOutcome

if TYPE_CHECKING:
    from leap.adapters.base.store import CatalogStore
    from leap.config.settings import Settings
    from leap.models.item import Item

logger = logging.getLogger(__name__)
events = structlog.get_logger("leap.search")


class LeapEngine:
    """Core orchestrator for Leap searches.

    Pipeline:
      raw query → [compile_query] → expression
                → [CatalogStore.match_ranked] → rows
                → (no rows) [FallbackResolver] → suggestions
                → SearchOutcome

    Attributes:
        settings: Application configuration.
        store: The catalog store holding items and their index.
        fallback: The fallback heuristic chain.
    """

    def __init__(
        self,
        settings: Settings,
        store: CatalogStore | None = None,
        fallback: FallbackResolver | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or SQLiteCatalogStore(
            database_path=settings.storage.database_path,
            tokenizer=settings.storage.tokenizer,
        )
        self.fallback = fallback or FallbackResolver.from_settings(settings.fallback)

    async def initialize(self) -> None:
        """Open the catalog store."""
        await self.store.initialize()
        logger.info(
            "Leap engine initialized (store=%s, fallback=%s)",
            self.store.name,
            ",".join(self.fallback.heuristics),
        )

    async def shutdown(self) -> None:
        """Close the catalog store."""
        await self.store.shutdown()
        logger.info("Leap engine shut down")

    # ──────────────────────────────────────────────────────────────────────
    # Search
    # ──────────────────────────────────────────────────────────────────────

    async def execute(self, compiled: str | None) -> list[Item] | None:
        """Run a compiled expression against the index.

        Args:
            compiled: Output of ``compile_query``.

        Returns:
            None when there was nothing to search, otherwise the ranked rows
            (possibly empty), best match first.
        """
        if not compiled:
            return None
        return await self.store.match_ranked(compiled, self.settings.search.max_results)

    async def search(self, raw: str) -> SearchOutcome:
        """Answer a raw query.

        Empty input skips both search and fallback. Index errors propagate
        unchanged; fallback only runs after a clean zero-row result.

        Args:
            raw: The text the user typed.

        Returns:
            The ranked outcome.
        """
        start_time = time.monotonic()
        query = raw.strip()
        compiled = compile_query(query)

        rows = await self.execute(compiled)
        if rows is None:
            return SearchOutcome(query=query)

        if rows:
            outcome = SearchOutcome(query=query, compiled=compiled, results=rows)
        else:
            suggestions = await self.fallback.resolve(query)
            outcome = SearchOutcome(query=query, compiled=compiled, results=suggestions, fallback=True)

        outcome.processing_time_ms = int((time.monotonic() - start_time) * 1000)
        events.info(
            "search_complete",
            query=query,
            compiled=compiled,
            results=len(outcome.results),
            fallback=outcome.fallback,
            processing_time_ms=outcome.processing_time_ms,
        )
        return outcome

    # ──────────────────────────────────────────────────────────────────────
    # Catalog management
    # ──────────────────────────────────────────────────────────────────────

    async def upsert(self, item: Item) -> Item:
        """Insert or replace one item."""
        await self.store.upsert(item)
        return item

    async def import_batch(self, payload: Any) -> int:
        """Validate and upsert a batch atomically.

        Raises:
            BatchValidationError: If any item is invalid; nothing is written.
        """
        items = validate_batch(payload)
        written = await self.store.upsert_many(items)
        logger.info("Imported batch of %d item(s)", written)
        return written

    async def rebuild_index(self) -> IndexRebuildResponse:
        """Regenerate the search index from the item table."""
        start_time = time.monotonic()
        indexed = await self.store.rebuild_index()
        return IndexRebuildResponse(
            indexed=indexed,
            processing_time_ms=int((time.monotonic() - start_time) * 1000),
        )
