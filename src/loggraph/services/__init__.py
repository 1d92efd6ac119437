"""Indexing services: walker, document store and indexer."""
