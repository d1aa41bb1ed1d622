"""
Storage interfaces and data models for the embedding cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class EmbeddingRecord:
    """A cached corpus-entry embedding."""

    entry_id: int
    model: str
    text_sha256: str
    embedding: list[float]


class StorageBackend(Protocol):
    """Protocol for persistence operations used by the embedding indexer."""

    def initialize(self) -> None:
        """Initialize required tables."""

    def close(self) -> None:
        """Release the underlying connection."""

    def upsert_embeddings(self, records: list[EmbeddingRecord]) -> int:
        """Insert or replace embeddings. Return count written."""

    def load_embeddings(self, *, model: str) -> dict[int, EmbeddingRecord]:
        """Return all cached embeddings for *model* keyed by entry id."""

    def count_embeddings(self, *, model: str) -> int:
        """Count cached embeddings for *model*."""

    def delete_missing_entries(self, *, model: str, active_entry_ids: set[int]) -> int:
        """Drop embeddings whose entry is no longer in the corpus. Return count removed."""
