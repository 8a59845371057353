"""Response models — Search outcomes, render decisions, and API payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from leap.models.item import FallbackSuggestion, Item


class OutputFormat(str, Enum):
    """Output modes understood by the result formatter."""

    HTML = "html"
    JSON = "json"
    ALFRED = "alfred"
    SUGGEST = "suggest"
    TXT = "txt"


# ═══════════════════════════════════════════════════════════════════════════════
# Engine output
# ═══════════════════════════════════════════════════════════════════════════════


class SearchOutcome(BaseModel):
    """Result of running one raw query through the engine.

    ``compiled`` is None when the trimmed query was empty; in that case no
    search and no fallback ran and ``results`` is empty.
    """

    query: str = Field(description="Original query, trimmed")
    compiled: str | None = Field(default=None, description="FTS5 expression sent to the index")
    results: list[Item | FallbackSuggestion] = Field(
        default_factory=list,
        description="Ranked records, best match first",
    )
    fallback: bool = Field(default=False, description="True when results came from fallback heuristics")
    processing_time_ms: int = Field(default=0, description="Total processing time in ms")


class RenderDecision(BaseModel):
    """What the presentation layer should send back.

    Either a redirect (``location`` set, status 307) or a body with a media
    type.
    """

    status_code: int = Field(default=200, description="HTTP status code")
    media_type: str | None = Field(default=None, description="Content type of the body")
    body: str = Field(default="", description="Rendered body")
    location: str | None = Field(default=None, description="Redirect target")

    @property
    def is_redirect(self) -> bool:
        return self.location is not None


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog management payloads
# ═══════════════════════════════════════════════════════════════════════════════


class ItemListResponse(BaseModel):
    """A list of catalog items."""

    total: int = Field(description="Number of items returned")
    items: list[Item] = Field(default_factory=list, description="Catalog items")


class BatchUpsertResponse(BaseModel):
    """Result of an accepted batch submission."""

    status: str = Field(default="completed", description="Batch status")
    upserted: int = Field(description="Number of items written")


class BatchErrorDetail(BaseModel):
    """One validation failure inside a rejected batch."""

    index: int = Field(description="Position of the offending item in the batch (-1: the payload itself)")
    loc: list[str | int] = Field(default_factory=list, description="Path to the offending field")
    msg: str = Field(description="Human-readable message")
    type: str = Field(description="Error type identifier")


class BatchErrorResponse(BaseModel):
    """Rejected batch: nothing was written."""

    detail: str = Field(description="Summary message")
    errors: list[BatchErrorDetail] = Field(description="Every validation failure")


class IndexRebuildResponse(BaseModel):
    """Result of an index rebuild."""

    status: str = Field(default="rebuilt", description="Rebuild status")
    indexed: int = Field(description="Number of rows now in the index")
    processing_time_ms: int = Field(default=0, description="Rebuild time in ms")


def dump_record(record: Item | FallbackSuggestion) -> dict[str, Any]:
    """Serialise a result record in the ``json`` output shape."""
    return record.model_dump(mode="json")
