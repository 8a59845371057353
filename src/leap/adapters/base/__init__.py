"""Base store interface — Abstract catalog store and its exceptions."""

from leap.adapters.base.store import CatalogStore, StoreHealth

__all__ = ["CatalogStore", "StoreHealth"]
