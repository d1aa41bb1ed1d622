"""
Vector-based semantic ranking over the kural corpus.

Entry vectors come from the precomputed embedding table when present and
from a live provider call otherwise; per-entry provider failures drop the
entry instead of aborting the ranking.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Mapping, Sequence

from ..embeddings import EmbeddingClient
from ..errors import ProviderError, ValidationError
from ..models import CorpusEntry, ScoredEntry
from .ranker import rank_scored
from .similarity import cosine_similarity

logger = logging.getLogger(__name__)

EntryEmbedder = Callable[[CorpusEntry], Sequence[float]]


def make_entry_embedder(
    client: EmbeddingClient | None,
    table: Mapping[int, Sequence[float]] | None = None,
) -> EntryEmbedder:
    """Return a function that looks an entry up in *table* before calling *client*."""
    cached_vectors: Mapping[int, Sequence[float]] = table or {}

    def _embed(entry: CorpusEntry) -> Sequence[float]:
        cached = cached_vectors.get(entry.id)
        if cached is not None:
            return cached
        if client is None:
            raise ProviderError("No embedding provider configured")
        return client.embed_texts([entry.comparison_text()])[0]

    return _embed


def rank_semantic(
    query_vec: Sequence[float],
    corpus: Sequence[CorpusEntry],
    embed_fn: EntryEmbedder,
    top_k: int = 5,
    *,
    max_workers: int = 8,
) -> list[ScoredEntry]:
    """Score every entry against *query_vec* and return the best *top_k*."""

    def _score(entry: CorpusEntry) -> ScoredEntry | None:
        try:
            vector = embed_fn(entry)
        except (ProviderError, ValidationError) as exc:
            logger.warning("semantic.entry_skipped id=%s err=%s", entry.id, exc)
            return None
        return ScoredEntry(entry=entry, score=cosine_similarity(query_vec, vector))

    if max_workers <= 1 or len(corpus) <= 1:
        results = [_score(entry) for entry in corpus]
    else:
        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            # map() yields in corpus order, which keeps tie-breaking stable
            results = list(executor.map(_score, corpus))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    scored = [item for item in results if item is not None]
    skipped = len(corpus) - len(scored)
    if skipped:
        logger.info("semantic.scored ok=%d skipped=%d", len(scored), skipped)
    if not scored:
        return []
    return rank_scored(scored, limit=top_k)


class SemanticSearchEngine:
    """Embed a question and rank corpus entries by cosine similarity."""

    def __init__(
        self,
        embedding_client: EmbeddingClient | None,
        embedding_table: Mapping[int, Sequence[float]] | None = None,
        *,
        max_workers: int = 8,
    ) -> None:
        self.embedding_client = embedding_client
        self.embedding_table = embedding_table or {}
        self.max_workers = max_workers

    def search(
        self,
        *,
        query: str,
        corpus: Sequence[CorpusEntry],
        limit: int = 5,
    ) -> list[ScoredEntry]:
        """Return ranked entries; raises ProviderError if the query cannot be embedded."""
        if self.embedding_client is None:
            raise ProviderError("No embedding provider configured")
        query_embedding = self.embedding_client.embed(query)
        return rank_semantic(
            query_embedding,
            corpus,
            make_entry_embedder(self.embedding_client, self.embedding_table),
            top_k=limit,
            max_workers=self.max_workers,
        )
