"""
Embedding cache orchestration.

Entries are re-embedded only when their comparison text changes, so the
per-request cost of semantic search no longer grows with corpus size.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Sequence

from .embeddings import EmbeddingClient
from .errors import ProviderError
from .models import CorpusEntry
from .storage import EmbeddingRecord, StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexingResult:
    """Summary output for an embedding cache refresh."""

    total_entries: int
    embedded: int
    reused: int
    pruned: int
    failed: int = 0


def text_sha256(entry: CorpusEntry) -> str:
    return hashlib.sha256(entry.comparison_text().encode("utf-8")).hexdigest()


class EmbeddingIndexer:
    """Build and refresh the precomputed embedding table for a corpus."""

    def __init__(
        self,
        storage: StorageBackend,
        embedding_client: EmbeddingClient,
        *,
        batch_size: int = 50,
    ) -> None:
        self.storage = storage
        self.embedding_client = embedding_client
        self.batch_size = max(batch_size, 1)

    def index_corpus(
        self,
        corpus: Sequence[CorpusEntry],
        *,
        force: bool = False,
    ) -> IndexingResult:
        model = self.embedding_client.model
        existing = self.storage.load_embeddings(model=model)

        pending: list[tuple[CorpusEntry, str]] = []
        reused = 0
        failed = 0
        for entry in corpus:
            if not entry.comparison_text().strip():
                failed += 1
                logger.warning("index.entry_skipped id=%s reason=blank_text", entry.id)
                continue
            digest = text_sha256(entry)
            cached = existing.get(entry.id)
            if not force and cached is not None and cached.text_sha256 == digest:
                reused += 1
                continue
            pending.append((entry, digest))

        embedded = 0
        for start in range(0, len(pending), self.batch_size):
            batch = pending[start : start + self.batch_size]
            try:
                vectors = self.embedding_client.embed_texts(
                    [entry.comparison_text() for entry, _ in batch]
                )
            except ProviderError as exc:
                failed += len(batch)
                logger.warning(
                    "index.batch_failed start=%d size=%d err=%s", start, len(batch), exc
                )
                continue

            records = [
                EmbeddingRecord(
                    entry_id=entry.id,
                    model=model,
                    text_sha256=digest,
                    embedding=list(vector),
                )
                for (entry, digest), vector in zip(batch, vectors)
            ]
            embedded += self.storage.upsert_embeddings(records)

        pruned = self.storage.delete_missing_entries(
            model=model,
            active_entry_ids={entry.id for entry in corpus},
        )

        result = IndexingResult(
            total_entries=len(corpus),
            embedded=embedded,
            reused=reused,
            pruned=pruned,
            failed=failed,
        )
        logger.info(
            "index.done model=%s total=%d embedded=%d reused=%d pruned=%d failed=%d",
            model,
            result.total_entries,
            result.embedded,
            result.reused,
            result.pruned,
            result.failed,
        )
        return result


def load_embedding_table(
    corpus: Sequence[CorpusEntry],
    storage: StorageBackend,
    *,
    model: str,
) -> dict[int, list[float]]:
    """Return cached vectors for entries whose text still matches the cache."""
    cached = storage.load_embeddings(model=model)
    table: dict[int, list[float]] = {}
    for entry in corpus:
        record = cached.get(entry.id)
        if record is not None and record.text_sha256 == text_sha256(entry):
            table[entry.id] = record.embedding
    return table
