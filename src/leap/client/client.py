"""Leap Python SDK — Async and sync clients for the Leap REST API.

Usage::

    # Async
    async with AsyncLeapClient("http://localhost:8080") as client:
        items = await client.search("perl")

    # Sync (wraps async client internally)
    client = LeapClient("http://localhost:8080")
    items = client.search("perl")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar, cast
from urllib.parse import quote

import httpx

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Response types (plain dicts mirroring the server JSON)
# ═══════════════════════════════════════════════════════════════════════════════

ItemDict = dict[str, Any]
"""One catalog item or fallback suggestion (mirrors ``Item`` JSON)."""


# ═══════════════════════════════════════════════════════════════════════════════
# Async client
# ═══════════════════════════════════════════════════════════════════════════════


class AsyncLeapClient:
    """Async Python client for the Leap API.

    Args:
        base_url: Leap server URL, e.g. ``"http://localhost:8080"``.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        async with AsyncLeapClient("http://localhost:8080") as client:
            for item in await client.search("go:pkg"):
                print(item["title"], item["url"])
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout: float = 10.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            **httpx_kwargs,
        )

    async def __aenter__(self) -> AsyncLeapClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Health ──

    async def health(self) -> dict[str, Any]:
        """Check server health."""
        resp = await self._client.get("/v1/health")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    async def store_health(self) -> dict[str, Any]:
        """Check catalog store health."""
        resp = await self._client.get("/v1/health/store")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    # ── Search ──

    async def search(self, query: str) -> list[ItemDict]:
        """Run a query and return the ranked records.

        Fallback suggestions are included when nothing in the catalog
        matched; they carry ``"file": null``.

        Args:
            query: Raw query text, exactly as typed in the browser.

        Returns:
            Records, best match first.
        """
        resp = await self._client.get("/v1/search", params={"q": query, "format": "json"})
        resp.raise_for_status()
        return cast(list[ItemDict], resp.json()["items"])

    async def suggest(self, query: str) -> list[str]:
        """Return the titles a browser would show in its suggestion dropdown."""
        resp = await self._client.get("/v1/suggest", params={"q": query})
        resp.raise_for_status()
        return cast(list[str], resp.json()[1])

    async def resolve(self, query: str) -> str | None:
        """Return the URL the browser would be redirected to, if any.

        Returns:
            The redirect target when exactly one record matches, else None.
        """
        resp = await self._client.get(
            "/v1/search",
            params={"q": query, "format": "html"},
            follow_redirects=False,
        )
        if resp.is_redirect:
            return resp.headers["location"]
        resp.raise_for_status()
        return None

    async def compile(self, query: str) -> str | None:
        """Return the full-text expression a query compiles to."""
        resp = await self._client.get("/v1/compile", params={"q": query})
        resp.raise_for_status()
        return cast("str | None", resp.json()["compiled"])

    # ── Catalog ──

    async def list_items(self, file: str | None = None) -> list[ItemDict]:
        """List catalog items, optionally only those of one file."""
        params = {"file": file} if file else None
        resp = await self._client.get("/v1/items", params=params)
        resp.raise_for_status()
        return cast(list[ItemDict], resp.json()["items"])

    async def get_item(self, file: str, title: str) -> ItemDict | None:
        """Fetch one item by identity, or None when it does not exist."""
        resp = await self._client.get(_item_path(file, title))
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return cast(ItemDict, resp.json())

    async def upsert(self, item: ItemDict) -> ItemDict:
        """Insert or replace one item."""
        resp = await self._client.put("/v1/items", json=item)
        resp.raise_for_status()
        return cast(ItemDict, resp.json())

    async def upsert_batch(self, items: list[ItemDict]) -> int:
        """Import a batch atomically.

        Raises:
            httpx.HTTPStatusError: With status 422 when any item is invalid;
                the response body lists every validation failure.

        Returns:
            Number of items written.
        """
        resp = await self._client.post("/v1/items/batch", json=items)
        resp.raise_for_status()
        return cast(int, resp.json()["upserted"])

    async def delete(self, file: str, title: str) -> bool:
        """Delete an item. Returns False when it did not exist."""
        resp = await self._client.delete(_item_path(file, title))
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True

    async def rebuild_index(self) -> dict[str, Any]:
        """Regenerate the server's search index from its item table."""
        resp = await self._client.post("/v1/index/rebuild")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())


def _item_path(file: str, title: str) -> str:
    # file is a single segment (Item rejects '/'); title may span several.
    return f"/v1/items/{quote(file, safe='')}/{quote(title, safe='')}"


# ═══════════════════════════════════════════════════════════════════════════════
# Sync client (wraps AsyncLeapClient)
# ═══════════════════════════════════════════════════════════════════════════════


class LeapClient:
    """Synchronous Python client for the Leap API.

    Wraps :class:`AsyncLeapClient` using ``asyncio.run``.

    Args:
        base_url: Leap server URL.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout: float = 10.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # Already inside an event loop (e.g. Jupyter): run in a thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncLeapClient:
        return AsyncLeapClient(
            self._base_url,
            timeout=self._timeout,
            **self._httpx_kwargs,
        )

    def _call(self, method: str, *args: Any) -> Any:
        async def _invoke() -> Any:
            async with self._make_client() as c:
                return await getattr(c, method)(*args)

        return self._run(_invoke())

    def health(self) -> dict[str, Any]:
        """Check server health."""
        return cast(dict[str, Any], self._call("health"))

    def store_health(self) -> dict[str, Any]:
        """Check catalog store health."""
        return cast(dict[str, Any], self._call("store_health"))

    def search(self, query: str) -> list[ItemDict]:
        """Run a query and return the ranked records."""
        return cast(list[ItemDict], self._call("search", query))

    def suggest(self, query: str) -> list[str]:
        return cast(list[str], self._call("suggest", query))

    def resolve(self, query: str) -> str | None:
        """Return the URL the browser would be redirected to, if any."""
        return cast("str | None", self._call("resolve", query))

    def compile(self, query: str) -> str | None:
        return cast("str | None", self._call("compile", query))

    def list_items(self, file: str | None = None) -> list[ItemDict]:
        return cast(list[ItemDict], self._call("list_items", file))

    def get_item(self, file: str, title: str) -> ItemDict | None:
        return cast("ItemDict | None", self._call("get_item", file, title))

    def upsert(self, item: ItemDict) -> ItemDict:
        """Insert or replace one item."""
        return cast(ItemDict, self._call("upsert", item))

    def upsert_batch(self, items: list[ItemDict]) -> int:
        """Import a batch atomically."""
        return cast(int, self._call("upsert_batch", items))

    def delete(self, file: str, title: str) -> bool:
        return cast(bool, self._call("delete", file, title))

    def rebuild_index(self) -> dict[str, Any]:
        return cast(dict[str, Any], self._call("rebuild_index"))
