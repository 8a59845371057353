"""Tests for the fallback heuristic chain."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from leap.config.settings import FallbackSettings
from leap.core.fallback import (
    FallbackHeuristic,
    FallbackResolver,
    HostHeuristic,
    PackageRegistryHeuristic,
    SearchEngineHeuristic,
)
from leap.core.resolver import HostResolver
from leap.models.item import FallbackSuggestion

# ── Helpers ──────────────────────────────────────────────────────────────────


def _fake_resolver(address: str | None) -> HostResolver:
    resolver = AsyncMock(spec=HostResolver)
    resolver.resolve.return_value = address
    return resolver


class _ExplodingHeuristic(FallbackHeuristic):
    name = "exploding"

    def matches(self, query: str) -> bool:
        return True

    async def suggest(self, query: str) -> FallbackSuggestion | None:
        raise RuntimeError("boom")


# ══════════════════════════════════════════════════════════════════════════════
# Individual heuristics
# ══════════════════════════════════════════════════════════════════════════════


class TestPackageRegistryHeuristic:
    @pytest.mark.parametrize("query", ["Foo::Bar", "Data::Dumper", "a_b::c1"])
    def test_matches_module_names(self, query: str) -> None:
        assert PackageRegistryHeuristic().matches(query)

    @pytest.mark.parametrize("query", ["Foo::Bar::Baz", "Foo:Bar", "Foo::", "foo bar", "Föö::Bar"])
    def test_rejects_other_shapes(self, query: str) -> None:
        assert not PackageRegistryHeuristic().matches(query)

    async def test_suggestion(self) -> None:
        suggestion = await PackageRegistryHeuristic().suggest("Foo::Bar")
        assert suggestion is not None
        assert suggestion.file is None
        assert suggestion.title == "MetaCPAN"
        assert suggestion.subtitle == "Search for Foo::Bar"
        assert suggestion.url == "https://metacpan.org/search?q=Foo%3A%3ABar"

    async def test_custom_registry(self) -> None:
        heuristic = PackageRegistryHeuristic("PyPI", "https://pypi.org/search/?q={query}")
        suggestion = await heuristic.suggest("a::b")
        assert suggestion is not None
        assert suggestion.title == "PyPI"
        assert suggestion.url == "https://pypi.org/search/?q=a%3A%3Ab"


class TestHostHeuristic:
    @pytest.mark.parametrize("query", ["example.com", "pkg.go.dev", "v1.2", "see x.y later"])
    def test_matches_dotted_names(self, query: str) -> None:
        assert HostHeuristic(_fake_resolver(None)).matches(query)

    @pytest.mark.parametrize("query", ["localhost", ".com", "trailing.", "a . b"])
    def test_rejects_undotted(self, query: str) -> None:
        assert not HostHeuristic(_fake_resolver(None)).matches(query)

    async def test_resolving_host_is_suggested(self) -> None:
        resolver = _fake_resolver("93.184.216.34")
        suggestion = await HostHeuristic(resolver).suggest("example.com")

        assert suggestion is not None
        assert suggestion.title == "example.com"
        assert suggestion.subtitle == "93.184.216.34"
        assert suggestion.url == "https://example.com"
        resolver.resolve.assert_awaited_once_with("example.com")

    async def test_unresolvable_host_is_skipped(self) -> None:
        assert await HostHeuristic(_fake_resolver(None)).suggest("nope.invalid") is None

    async def test_placeholder_address_is_skipped(self) -> None:
        assert await HostHeuristic(_fake_resolver("0.0.0.0")).suggest("blocked.example") is None


class TestSearchEngineHeuristic:
    @pytest.mark.parametrize("query", ["g widgets", "google widgets", "g  two words"])
    def test_matches_prefixes(self, query: str) -> None:
        assert SearchEngineHeuristic().matches(query)

    @pytest.mark.parametrize("query", ["G widgets", "gwidgets", "widgets g ", "googlewidgets"])
    def test_rejects_other_input(self, query: str) -> None:
        assert not SearchEngineHeuristic().matches(query)

    async def test_suggestion_escapes_the_search_term(self) -> None:
        suggestion = await SearchEngineHeuristic().suggest("google red & blue")
        assert suggestion is not None
        assert suggestion.title == "Google"
        assert suggestion.subtitle == "Search for red & blue"
        assert suggestion.url == "https://www.google.com/search?q=red+%26+blue"

    async def test_prefix_alone_yields_nothing(self) -> None:
        assert await SearchEngineHeuristic().suggest("g ") is None

    async def test_custom_engine(self) -> None:
        heuristic = SearchEngineHeuristic("DuckDuckGo", "https://duckduckgo.com/?q={query}", ["d "])
        suggestion = await heuristic.suggest("d widgets")
        assert suggestion is not None
        assert suggestion.title == "DuckDuckGo"
        assert suggestion.url == "https://duckduckgo.com/?q=widgets"
        assert not heuristic.matches("g widgets")


# ══════════════════════════════════════════════════════════════════════════════
# Resolver chain
# ══════════════════════════════════════════════════════════════════════════════


class TestFallbackResolver:
    def test_default_chain_order(self) -> None:
        resolver = FallbackResolver.from_settings(FallbackSettings())
        assert resolver.heuristics == ["package_registry", "host", "search_engine"]

    def test_host_lookup_can_be_disabled(self) -> None:
        resolver = FallbackResolver.from_settings(FallbackSettings(enable_host_lookup=False))
        assert resolver.heuristics == ["package_registry", "search_engine"]

    async def test_no_heuristic_applies(self) -> None:
        resolver = FallbackResolver.from_settings(FallbackSettings(), resolver=_fake_resolver(None))
        assert await resolver.resolve("nothing here") == []

    async def test_heuristics_are_additive(self) -> None:
        resolver = FallbackResolver.from_settings(
            FallbackSettings(),
            resolver=_fake_resolver("192.0.2.7"),
        )

        suggestions = await resolver.resolve("g example.com")

        assert [s.heuristic for s in suggestions] == ["host", "search_engine"]
        assert suggestions[0].url == "https://g example.com"
        assert suggestions[1].subtitle == "Search for example.com"

    async def test_failing_heuristic_is_skipped(self) -> None:
        resolver = FallbackResolver([_ExplodingHeuristic(), SearchEngineHeuristic()])

        suggestions = await resolver.resolve("g widgets")

        assert len(suggestions) == 1
        assert suggestions[0].title == "Google"

    async def test_heuristic_name_is_not_serialized(self) -> None:
        resolver = FallbackResolver([PackageRegistryHeuristic()])
        (suggestion,) = await resolver.resolve("Foo::Bar")
        assert "heuristic" not in suggestion.model_dump()
