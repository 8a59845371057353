"""Fallback suggestions — Synthetic results for queries the index cannot answer.

When a compiled query matches no rows, the raw query is offered to an
ordered chain of heuristics. Each heuristic declares whether it applies and
contributes at most one suggestion. The chain is additive: every matching
heuristic runs, regardless of what the others produced.

Built-in heuristics (in order):
  Foo::Bar      → package registry search (MetaCPAN by default)
  example.com   → the host itself, if it resolves
  g query       → web search engine (Google by default)
"""

from __future__ import annotations

import logging
import re
import urllib.parse
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from leap.core.resolver import HostResolver
from leap.models.item import FallbackSuggestion

if TYPE_CHECKING:
    from leap.config.settings import FallbackSettings

logger = logging.getLogger(__name__)

PLACEHOLDER_ADDRESS = "0.0.0.0"


class FallbackHeuristic(ABC):
    """Base class for fallback heuristics."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Heuristic identifier."""

    @abstractmethod
    def matches(self, query: str) -> bool:
        """Return True if this heuristic should look at the query."""

    @abstractmethod
    async def suggest(self, query: str) -> FallbackSuggestion | None:
        """Return a suggestion for the query, or None."""


class PackageRegistryHeuristic(FallbackHeuristic):
    """``Word::Word`` module names → package registry search."""

    name = "package_registry"

    _PATTERN = re.compile(r"^\w+::\w+$", re.ASCII)

    def __init__(
        self,
        registry_name: str = "MetaCPAN",
        url_template: str = "https://metacpan.org/search?q={query}",
    ) -> None:
        self.registry_name = registry_name
        self.url_template = url_template

    def matches(self, query: str) -> bool:
        return bool(self._PATTERN.match(query))

    async def suggest(self, query: str) -> FallbackSuggestion | None:
        return FallbackSuggestion(
            title=self.registry_name,
            subtitle=f"Search for {query}",
            url=self.url_template.format(query=urllib.parse.quote_plus(query)),
            heuristic=self.name,
        )


class HostHeuristic(FallbackHeuristic):
    """Domain-shaped queries → ``https://<query>`` when the name resolves.

    Any ``x.y`` pair triggers a lookup, including version numbers and
    decimals; those fail to resolve and yield nothing.
    """

    name = "host"

    _PATTERN = re.compile(r"[A-Za-z0-9]\.[A-Za-z0-9]")

    def __init__(self, resolver: HostResolver | None = None) -> None:
        self.resolver = resolver or HostResolver()

    def matches(self, query: str) -> bool:
        return bool(self._PATTERN.search(query))

    async def suggest(self, query: str) -> FallbackSuggestion | None:
        address = await self.resolver.resolve(query)
        if not address or address == PLACEHOLDER_ADDRESS:
            return None
        return FallbackSuggestion(
            title=query,
            subtitle=address,
            url=f"https://{query}",
            heuristic=self.name,
        )


class SearchEngineHeuristic(FallbackHeuristic):
    """``g query`` / ``google query`` → web search engine.

    Prefixes are case-sensitive and include their trailing space.
    """

    name = "search_engine"

    def __init__(
        self,
        engine_name: str = "Google",
        url_template: str = "https://www.google.com/search?q={query}",
        prefixes: list[str] | None = None,
    ) -> None:
        self.engine_name = engine_name
        self.url_template = url_template
        self.prefixes = prefixes if prefixes is not None else ["g ", "google "]

    def matches(self, query: str) -> bool:
        return self._strip_prefix(query) is not None

    async def suggest(self, query: str) -> FallbackSuggestion | None:
        search_term = self._strip_prefix(query)
        if not search_term:
            return None
        return FallbackSuggestion(
            title=self.engine_name,
            subtitle=f"Search for {search_term}",
            url=self.url_template.format(query=urllib.parse.quote_plus(search_term)),
            heuristic=self.name,
        )

    def _strip_prefix(self, query: str) -> str | None:
        for prefix in self.prefixes:
            if query.startswith(prefix):
                return query[len(prefix):].strip()
        return None


class FallbackResolver:
    """Runs every applicable heuristic, in order, and collects suggestions.

    Heuristic failures are logged and skipped; ``resolve`` never raises.

    Example:
        >>> resolver = FallbackResolver([PackageRegistryHeuristic()])
        >>> [s.title for s in await resolver.resolve("Foo::Bar")]
        ['MetaCPAN']
    """

    def __init__(self, heuristics: list[FallbackHeuristic]) -> None:
        self._heuristics = list(heuristics)

    @classmethod
    def from_settings(
        cls,
        settings: FallbackSettings,
        resolver: HostResolver | None = None,
    ) -> FallbackResolver:
        """Build the default chain from configuration."""
        heuristics: list[FallbackHeuristic] = [
            PackageRegistryHeuristic(settings.registry_name, settings.registry_url),
        ]
        if settings.enable_host_lookup:
            heuristics.append(HostHeuristic(resolver or HostResolver(settings.resolve_timeout)))
        heuristics.append(
            SearchEngineHeuristic(settings.engine_name, settings.engine_url, settings.engine_prefixes),
        )
        return cls(heuristics)

    @property
    def heuristics(self) -> list[str]:
        """Names of the configured heuristics, in order."""
        return [h.name for h in self._heuristics]

    async def resolve(self, query: str) -> list[FallbackSuggestion]:
        """Collect suggestions for a query that matched nothing.

        Args:
            query: The trimmed raw query.

        Returns:
            Zero or more suggestions, in heuristic order.
        """
        suggestions: list[FallbackSuggestion] = []
        for heuristic in self._heuristics:
            if not heuristic.matches(query):
                continue
            try:
                suggestion = await heuristic.suggest(query)
            except Exception:
                logger.warning("Fallback heuristic '%s' failed for %r", heuristic.name, query, exc_info=True)
                continue
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions
