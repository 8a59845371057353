"""Core — query compilation, ranked retrieval, fallback resolution, formatting."""

from leap.core.engine import LeapEngine
from leap.core.query import compile_query, quote

__all__ = ["LeapEngine", "compile_query", "quote"]
