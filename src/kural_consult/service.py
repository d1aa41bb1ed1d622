"""
Builds a ready-to-use ResolutionPipeline from settings and keeps one per process.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

import duckdb

from .chat import ChatClient, create_chat_client
from .config import Settings, load_settings
from .corpus import CorpusStore
from .embeddings import EmbeddingClient, create_embedding_client
from .indexing import EmbeddingIndexer, IndexingResult, load_embedding_table
from .models import CorpusEntry
from .pipeline import ResolutionPipeline
from .storage import DuckDBStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PIPELINE: ResolutionPipeline | None = None
_PIPELINE_LOCK = threading.Lock()


def _optional_client(
    factory: Callable[[Settings], T], settings: Settings, label: str
) -> T | None:
    try:
        return factory(settings)
    except ValueError as exc:
        logger.warning("service.%s_client_disabled err=%s", label, exc)
        return None


def load_settings_corpus(settings: Settings) -> tuple[CorpusEntry, ...]:
    return CorpusStore(
        settings.corpus_source,
        token=settings.corpus_token,
        timeout=settings.request_timeout,
    ).load()


def refresh_embeddings(
    corpus: Sequence[CorpusEntry],
    embedding_client: EmbeddingClient,
    settings: Settings,
    *,
    force: bool = False,
) -> IndexingResult:
    """Embed new or changed entries into the DuckDB cache."""
    storage = DuckDBStorage(settings.db_path)
    try:
        indexer = EmbeddingIndexer(
            storage,
            embedding_client,
            batch_size=settings.embedding_batch_size,
        )
        return indexer.index_corpus(corpus, force=force)
    finally:
        storage.close()


def prepare_embedding_table(
    corpus: Sequence[CorpusEntry],
    embedding_client: EmbeddingClient,
    settings: Settings,
) -> dict[int, list[float]]:
    """Refresh (when enabled) and load the precomputed embedding table.

    Cache problems are logged and yield an empty table; semantic search then
    embeds entries live.
    """
    try:
        if settings.auto_index:
            refresh_embeddings(corpus, embedding_client, settings)
        if not Path(settings.db_path).exists():
            return {}
        storage = DuckDBStorage(settings.db_path, read_only=True, initialize=False)
        try:
            table = load_embedding_table(corpus, storage, model=embedding_client.model)
        finally:
            storage.close()
    except duckdb.Error as exc:
        logger.warning("service.embedding_cache_unavailable err=%s", exc)
        return {}
    logger.info(
        "service.embedding_table model=%s cached=%d total=%d",
        embedding_client.model,
        len(table),
        len(corpus),
    )
    return table


def build_pipeline(
    settings: Settings | None = None,
    *,
    corpus: Sequence[CorpusEntry] | None = None,
) -> ResolutionPipeline:
    """Load the corpus, construct provider clients and warm the embedding table."""
    resolved = settings or load_settings()
    entries = tuple(corpus) if corpus is not None else load_settings_corpus(resolved)

    embedding_client: EmbeddingClient | None = _optional_client(
        create_embedding_client, resolved, "embedding"
    )
    chat_client: ChatClient | None = _optional_client(create_chat_client, resolved, "chat")

    embedding_table: dict[int, list[float]] = {}
    if embedding_client is not None:
        embedding_table = prepare_embedding_table(entries, embedding_client, resolved)

    return ResolutionPipeline(
        entries,
        embedding_client=embedding_client,
        chat_client=chat_client,
        embedding_table=embedding_table,
        top_k=resolved.top_k,
        max_workers=resolved.max_workers,
    )


def cache_status(settings: Settings) -> dict[str, Any]:
    """Describe the embedding cache without touching the providers."""
    cached = 0
    if Path(settings.db_path).exists():
        try:
            storage = DuckDBStorage(settings.db_path, read_only=True, initialize=False)
        except duckdb.Error as exc:
            logger.warning("service.cache_status_failed err=%s", exc)
        else:
            try:
                cached = storage.count_embeddings(model=settings.embedding_model)
            finally:
                storage.close()
    return {
        "provider": settings.provider,
        "embedding_model": settings.embedding_model,
        "db_path": settings.db_path,
        "cached_embeddings": cached,
    }


def get_pipeline() -> ResolutionPipeline:
    """Return the process-wide pipeline, building it on first use."""
    global _PIPELINE
    with _PIPELINE_LOCK:
        if _PIPELINE is None:
            _PIPELINE = build_pipeline()
        return _PIPELINE


def reset_pipeline(pipeline: ResolutionPipeline | None = None) -> None:
    """Drop (or replace) the process-wide pipeline."""
    global _PIPELINE
    with _PIPELINE_LOCK:
        _PIPELINE = pipeline
