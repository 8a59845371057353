"""Data models — catalog items, search outcomes, and API payloads."""

from leap.models.item import FallbackSuggestion, Item, SearchRecord
from leap.models.response import OutputFormat, RenderDecision, SearchOutcome

__all__ = [
    "FallbackSuggestion",
    "Item",
    "OutputFormat",
    "RenderDecision",
    "SearchOutcome",
    "SearchRecord",
]
