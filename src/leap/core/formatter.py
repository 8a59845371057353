"""Result formatting — Decide how a ranked result list goes back to the client.

Output modes:

| Mode      | Body                                                      |
|-----------|-----------------------------------------------------------|
| ``html``  | listing page; a single result redirects (307) instead     |
| ``json``  | ``{"items": [...]}``                                      |
| ``alfred``| Alfred script-filter payload                              |
| ``suggest``| ``[query, [titles...]]`` (OpenSearch suggestions)        |
| ``txt``   | ``title<TAB>url<TAB>tags`` per line, never redirects      |
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from html import escape
from typing import Any

from leap.models.item import SearchRecord
from leap.models.response import OutputFormat, RenderDecision, dump_record

REDIRECT_STATUS = 307
SUGGEST_MEDIA_TYPE = "application/x-suggestions+json"

_HTML_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{query} - Leap</title>
</head>
<body>
<form action="" method="get"><input type="search" name="q" value="{query}" autofocus></form>
<p>{count} result{plural} for <strong>{query}</strong></p>
<ul>
{rows}
</ul>
</body>
</html>
"""


def format_results(
    results: Sequence[SearchRecord],
    mode: OutputFormat | str,
    original_query: str,
) -> RenderDecision:
    """Render a ranked result list in the requested output mode.

    Args:
        results: Records, best match first.
        mode: One of the ``OutputFormat`` values.
        original_query: The trimmed query the results answer.

    Returns:
        A redirect or a body to send.

    Raises:
        ValueError: If ``mode`` is not a known output format.
    """
    mode = OutputFormat(mode)

    if mode is OutputFormat.JSON:
        payload = {"items": [dump_record(r) for r in results]}
        return RenderDecision(media_type="application/json", body=_dumps(payload))

    if mode is OutputFormat.ALFRED:
        payload = {"items": [_alfred_item(r) for r in results]}
        return RenderDecision(media_type="application/json", body=_dumps(payload))

    if mode is OutputFormat.SUGGEST:
        payload = [original_query, [r.title for r in results]]
        return RenderDecision(media_type=SUGGEST_MEDIA_TYPE, body=_dumps(payload))

    # html and txt share the listing path; only html auto-redirects.
    if len(results) == 1 and mode is not OutputFormat.TXT:
        return RenderDecision(status_code=REDIRECT_STATUS, location=results[0].url)

    if mode is OutputFormat.TXT:
        return RenderDecision(media_type="text/plain; charset=utf-8", body=_render_text(results))

    return RenderDecision(media_type="text/html; charset=utf-8", body=_render_html(results, original_query))


def _dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _alfred_item(record: SearchRecord) -> dict[str, Any]:
    item: dict[str, Any] = {"title": record.title}
    if record.subtitle:
        item["subtitle"] = record.subtitle
    item["arg"] = record.url
    if record.file is not None:
        item["uid"] = f"{record.file}:{record.title}"
    return item


def _render_text(results: Sequence[SearchRecord]) -> str:
    return "".join(f"{r.title}\t{r.url}\t{r.tags or ''}\n" for r in results)


def _render_html(results: Sequence[SearchRecord], query: str) -> str:
    rows = []
    for r in results:
        row = f'<li><a href="{escape(r.url)}">{escape(r.title)}</a>'
        if r.subtitle:
            row += f" <span>{escape(r.subtitle)}</span>"
        if r.tags:
            row += f" <small>{escape(r.tags)}</small>"
        rows.append(row + "</li>")
    return _HTML_PAGE.format(
        query=escape(query),
        count=len(results),
        plural="" if len(results) == 1 else "s",
        rows="\n".join(rows),
    )
