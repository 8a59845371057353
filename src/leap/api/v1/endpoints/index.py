"""Index maintenance endpoint — Rebuild the full-text index from the catalog."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from leap.api.deps import get_engine
from leap.core.engine import LeapEngine
from leap.models.response import IndexRebuildResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/index/rebuild",
    response_model=IndexRebuildResponse,
    summary="Rebuild the search index",
    description=(
        "Drop every row of the full-text index and re-derive it from the "
        "authoritative item table. Only needed if the database was modified "
        "outside the catalog store."
    ),
    responses={500: {"description": "Internal server error — rebuild failed"}},
)
async def rebuild_index(
    engine: LeapEngine = Depends(get_engine),
) -> IndexRebuildResponse:
    try:
        return await engine.rebuild_index()
    except Exception as e:
        logger.error("Index rebuild failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Index rebuild failed: {e!s}",
        ) from e
