"""Leap — personal bookmark and launcher index.

Short queries are compiled into ranked full-text searches over a catalog of
bookmarks; a single unambiguous match redirects straight to its URL.
"""

__version__ = "0.1.0"
