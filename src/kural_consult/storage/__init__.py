"""Storage backends for the KuralConsult embedding cache."""

from .base import EmbeddingRecord, StorageBackend
from .duckdb import DuckDBStorage

__all__ = [
    "EmbeddingRecord",
    "StorageBackend",
    "DuckDBStorage",
]
