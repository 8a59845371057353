"""Batch validation — All-or-nothing checking of submitted catalog items."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from leap.models.item import Item
from leap.models.response import BatchErrorDetail

_ITEM_LIST = TypeAdapter(list[Item])


class BatchValidationError(Exception):
    """Raised when any item of a batch fails validation.

    Attributes:
        errors: One entry per validation failure across the whole batch.
    """

    def __init__(self, errors: list[BatchErrorDetail]) -> None:
        self.errors = errors
        super().__init__(f"Batch rejected: {len(errors)} validation error(s)")


def validate_batch(payload: Any) -> list[Item]:
    """Validate a batch payload against the item schema.

    Every item needs ``file``, ``title`` and ``url``; ``subtitle`` and
    ``tags`` are optional; unknown keys are rejected.

    Args:
        payload: Decoded JSON, expected to be a list of item objects.

    Returns:
        The validated items, in submission order.

    Raises:
        BatchValidationError: Listing every failure. No item is returned
            when any item is invalid.
    """
    try:
        return _ITEM_LIST.validate_python(payload)
    except ValidationError as e:
        raise BatchValidationError([_to_detail(err) for err in e.errors()]) from e


def _to_detail(err: dict[str, Any]) -> BatchErrorDetail:
    loc = list(err.get("loc", ()))
    index = -1
    if loc and isinstance(loc[0], int):
        index = loc.pop(0)
    return BatchErrorDetail(
        index=index,
        loc=loc,
        msg=err.get("msg", ""),
        type=err.get("type", ""),
    )
