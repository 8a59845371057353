"""Catalog endpoints — List, fetch, upsert, batch import, and delete bookmark records."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from leap.api.deps import get_engine
from leap.core.batch import BatchValidationError
from leap.core.engine import LeapEngine
from leap.models.item import Item
from leap.models.response import BatchErrorResponse, BatchUpsertResponse, ItemListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items")


@router.get(
    "",
    response_model=ItemListResponse,
    summary="List items",
    description="List every catalog item ordered by file and title, or only the items of one file.",
)
async def list_items(
    file: str | None = Query(default=None, description="Only items of this file"),
    engine: LeapEngine = Depends(get_engine),
) -> ItemListResponse:
    items = await engine.store.list_by_file(file) if file else await engine.store.list_all()
    return ItemListResponse(total=len(items), items=items)


@router.put(
    "",
    response_model=Item,
    summary="Upsert an item",
    description=(
        "Insert an item, or replace the subtitle, url and tags of the item "
        "with the same `(file, title)` identity."
    ),
    responses={422: {"description": "Validation error — missing or unknown fields"}},
)
async def upsert_item(
    item: Item,
    engine: LeapEngine = Depends(get_engine),
) -> Item:
    return await engine.upsert(item)


@router.post(
    "/batch",
    response_model=BatchUpsertResponse,
    summary="Batch import",
    description=(
        "Validate a JSON array of items and upsert all of them in one "
        "transaction. If any item is invalid the whole batch is rejected and "
        "every validation failure is listed."
    ),
    responses={
        422: {"model": BatchErrorResponse, "description": "Batch rejected — nothing was written"},
        500: {"description": "Internal server error — the batch could not be written"},
    },
)
async def import_batch(
    payload: Any = Body(..., description="Array of item objects"),
    engine: LeapEngine = Depends(get_engine),
) -> BatchUpsertResponse | JSONResponse:
    try:
        written = await engine.import_batch(payload)
    except BatchValidationError as e:
        logger.info("Rejected batch: %d validation error(s)", len(e.errors))
        body = BatchErrorResponse(detail=str(e), errors=e.errors)
        return JSONResponse(status_code=422, content=body.model_dump())
    except Exception as e:
        logger.error("Batch import failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Batch import failed: {e!s}",
        ) from e
    return BatchUpsertResponse(upserted=written)


@router.get(
    "/{file}/{title:path}",
    response_model=Item,
    summary="Get an item",
    responses={404: {"description": "No item with this identity"}},
)
async def get_item(
    file: str,
    title: str,
    engine: LeapEngine = Depends(get_engine),
) -> Item:
    item = await engine.store.get(file, title)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item '{file}:{title}' not found")
    return item


@router.delete(
    "/{file}/{title:path}",
    status_code=204,
    summary="Delete an item",
    responses={404: {"description": "No item with this identity"}},
)
async def delete_item(
    file: str,
    title: str,
    engine: LeapEngine = Depends(get_engine),
) -> Response:
    if not await engine.store.delete(file, title):
        raise HTTPException(status_code=404, detail=f"Item '{file}:{title}' not found")
    return Response(status_code=204)
