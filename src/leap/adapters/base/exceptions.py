"""Store-specific exceptions."""


class StoreError(Exception):
    """Base exception for catalog store errors."""


class StoreConnectionError(StoreError):
    """Raised when the store is not initialized or its backend is unavailable."""


class QueryError(StoreError):
    """Raised when the full-text engine rejects a search expression."""


class ConfigurationError(StoreError):
    """Raised when store configuration is invalid."""
