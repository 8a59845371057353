"""Search endpoints — Ranked lookup with redirect, listing, and integration payloads.

``GET /v1/search?q=...&format=...`` supports five output modes:

- **html** (default) — listing page, or a 307 redirect when exactly one
  record matches.
- **json** — ``{"items": [...]}``.
- **alfred** — Alfred script-filter payload.
- **suggest** — OpenSearch suggestion array ``[query, [titles]]``.
- **txt** — tab-separated lines, never redirects.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel, Field

from leap.adapters.base.exceptions import QueryError
from leap.api.deps import get_engine
from leap.core.engine import LeapEngine
from leap.core.formatter import format_results
from leap.core.query import compile_query
from leap.models.response import OutputFormat, RenderDecision, SearchOutcome

logger = logging.getLogger(__name__)

router = APIRouter()


class CompileResponse(BaseModel):
    """Compiled form of a query, without running it."""

    query: str = Field(description="Original query, trimmed")
    compiled: str | None = Field(description="FTS5 expression, or null for an empty query")


@router.get(
    "/search",
    summary="Search the catalog",
    description=(
        "Compile the query, run it against the ranked full-text index and "
        "render the results. When the index has no match, fallback "
        "heuristics synthesize suggestions (package registry, hostname, "
        "web search).\n\n"
        "| format | response |\n"
        "|--------|----------|\n"
        "| `html` | listing page; **307 redirect** when exactly one result |\n"
        "| `json` | `{\"items\": [...]}` |\n"
        "| `alfred` | `{\"items\": [{title, subtitle, arg, uid}]}` |\n"
        "| `suggest` | `[query, [titles]]` as `application/x-suggestions+json` |\n"
        "| `txt` | `title\\turl\\ttags` per line |"
    ),
    responses={
        307: {"description": "Exactly one match (html mode): redirect to its URL"},
        400: {"description": "The query compiled to an expression the index rejected"},
        422: {"description": "Validation error — unknown format"},
        500: {"description": "Internal server error — the index could not be read"},
    },
)
async def search(
    q: str = Query(default="", max_length=2000, description="Raw query text"),
    fmt: OutputFormat = Query(default=OutputFormat.HTML, alias="format", description="Output mode"),
    engine: LeapEngine = Depends(get_engine),
) -> Response:
    """Search the catalog and render the outcome in the requested mode."""
    outcome = await _run_search(engine, q)
    return render(format_results(outcome.results, fmt, outcome.query))


@router.get(
    "/suggest",
    summary="Browser search suggestions",
    description="Shorthand for `/v1/search?format=suggest`, referenced by `/opensearch.xml`.",
)
async def suggest(
    q: str = Query(default="", max_length=2000, description="Raw query text"),
    engine: LeapEngine = Depends(get_engine),
) -> Response:
    """Return ``[query, [titles]]`` for the browser's suggestion dropdown."""
    outcome = await _run_search(engine, q)
    return render(format_results(outcome.results, OutputFormat.SUGGEST, outcome.query))


@router.get(
    "/compile",
    response_model=CompileResponse,
    summary="Compile a query",
    description="Return the FTS5 expression a query compiles to, without searching.",
)
async def compile_only(
    q: str = Query(default="", max_length=2000, description="Raw query text"),
) -> CompileResponse:
    """Expose the query compiler for inspection and debugging."""
    return CompileResponse(query=q.strip(), compiled=compile_query(q))


async def _run_search(engine: LeapEngine, q: str) -> SearchOutcome:
    try:
        return await engine.search(q)
    except QueryError as e:
        logger.info("Rejected search expression for %r: %s", q, e)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid search expression: {e!s}",
        ) from e
    except Exception as e:
        logger.error("Search failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Search processing failed: {e!s}",
        ) from e


def render(decision: RenderDecision) -> Response:
    """Turn a render decision into a Starlette response."""
    if decision.is_redirect:
        return RedirectResponse(decision.location, status_code=decision.status_code)
    return Response(
        content=decision.body,
        status_code=decision.status_code,
        media_type=decision.media_type,
    )
