"""Observability — structured logging setup."""

from leap.observability.logging import setup_logging

__all__ = ["setup_logging"]
