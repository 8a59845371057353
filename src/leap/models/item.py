"""Catalog item models — bookmark records and synthetic fallback suggestions.

An ``Item`` is a stored bookmark identified by ``(file, title)``. A
``FallbackSuggestion`` has the same shape but no storage identity: it is
synthesized per request when the index has nothing to offer.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Item(BaseModel):
    """A bookmark record in the catalog.

    ``file`` groups records (typically the source list they were imported
    from) and together with ``title`` forms the record identity. Upserting
    an item with an existing identity replaces its subtitle, url and tags.
    ``file`` cannot contain ``/`` because it is a single segment of the item
    URL path.
    """

    model_config = ConfigDict(extra="forbid")

    file: str = Field(min_length=1, description="Source group of the record; part of the identity")
    title: str = Field(min_length=1, description="Display title; part of the identity")
    subtitle: str | None = Field(default=None, description="Secondary display text")
    url: str = Field(min_length=1, description="Destination URL")
    tags: str | None = Field(default=None, description="Free-form, space-separated tags")

    @field_validator("file")
    @classmethod
    def _file_is_one_path_segment(cls, value: str) -> str:
        if "/" in value:
            raise ValueError("file must not contain '/'")
        return value

    @property
    def uid(self) -> str:
        """Stable identifier used by launcher integrations."""
        return f"{self.file}:{self.title}"


class FallbackSuggestion(BaseModel):
    """A synthesized, non-persisted result produced by a fallback heuristic."""

    file: None = Field(default=None, description="Always None: suggestions have no storage identity")
    title: str = Field(description="Display title")
    subtitle: str | None = Field(default=None, description="Secondary display text")
    url: str = Field(description="Destination URL")
    tags: str | None = Field(default=None, description="Always None for suggestions")
    heuristic: str = Field(default="", exclude=True, description="Name of the heuristic that produced it")


SearchRecord = Union[Item, FallbackSuggestion]
"""Anything that can appear in a result list."""
