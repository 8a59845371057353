"""Catalog store layer — Persistence for bookmark records and their search index.

Built-in stores:
  - sqlite: SQLite table + FTS5 trigram index, BM25-ranked matching

Implement ``CatalogStore`` to back the catalog with another engine.
"""
