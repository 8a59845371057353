"""Query compilation — Turns raw launcher input into an FTS5 match expression.

Two layers:

- ``quote`` rewrites one whitespace-free token into an expression fragment
  the trigram index can answer.
- ``compile_query`` splits a whole query into tokens, handles the optional
  ``field:rest`` scope prefix, and joins the quoted tokens (implicit AND).

Examples::

    >>> compile_query("perl docs")
    'perl docs'
    >>> compile_query("go:perl")
    'file:go perl'
    >>> compile_query("-go:perl")
    '-file:go perl'
    >>> quote("c++")
    '"c++"'
"""

from __future__ import annotations

import re
import string

# Negation / initial-token markers in FTS5 syntax; kept ahead of the quoted term.
_MARKERS = "-^"

# The trigram tokenizer cannot match anything shorter than this.
MIN_TERM_LENGTH = 3

_WORD_RE = re.compile(r"^\w+$")
_PHRASE_RE = re.compile(r'^"[^"]*"$')
_FIELD_SCOPE_RE = re.compile(r"^(-?)(\w+):\s*(.*)$", re.DOTALL)


def quote(term: str) -> str:
    """Quote a single token for the full-text index.

    Leading ``-``/``^`` markers are kept as-is. Tokens shorter than three
    characters are expanded into a 26-way ``OR`` of ``token + letter`` so
    they behave like prefix matches. Plain word tokens pass through; a token
    that is already a quoted phrase passes through too. Anything else is
    wrapped in double quotes with embedded quotes backslash-escaped.

    Args:
        term: A token containing no whitespace.

    Returns:
        An FTS5 expression fragment.
    """
    markers = ""
    while term and term[0] in _MARKERS:
        markers += term[0]
        term = term[1:]

    if len(term) < MIN_TERM_LENGTH:
        body = " OR ".join(term + letter for letter in string.ascii_lowercase)
    elif _WORD_RE.match(term) or _PHRASE_RE.match(term):
        body = term
    else:
        body = '"' + term.replace('"', '\\"') + '"'

    return markers + body


def compile_query(raw: str) -> str | None:
    """Compile a raw query string into an FTS5 expression.

    A query shaped like ``name: rest`` (optionally ``-name: rest``) is scoped
    to the ``file`` column with ``name`` as the literal value it must match;
    ``rest`` is then compiled like any other query.

    Args:
        raw: The text the user typed.

    Returns:
        The expression, or None when the trimmed input is empty.
    """
    query = raw.strip()
    if not query:
        return None

    scoped = _FIELD_SCOPE_RE.match(query)
    if scoped:
        negation, field, rest = scoped.groups()
        scope = f"{negation}file:{field}"
        terms = _quote_terms(rest)
        return f"{scope} {terms}" if terms else scope

    return _quote_terms(query)


def _quote_terms(text: str) -> str:
    return " ".join(quote(token) for token in text.split())
