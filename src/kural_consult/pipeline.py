"""
Cascading relevance resolution.

Tiers run strictly in order and the first one that yields an entry wins:

1. ``semantic``        embedding similarity over the corpus
2. ``ai_keyword``      chat-suggested keywords vs. all text fields
3. ``naive_keyword``   question words (> 3 chars) vs. translation + meaning
4. ``general_keyword`` fixed wisdom topics vs. translation + meaning
5. ``random``          uniform pick from the whole corpus

Provider failures inside a tier are logged and move the cascade on; they
never reach the caller. ``DimensionMismatch`` is a configuration bug and
propagates.
"""

from __future__ import annotations

import logging
import random
from typing import Mapping, Protocol, Sequence

from .chat import ChatClient
from .embeddings import EmbeddingClient
from .errors import EmptyCorpus, ProviderError, ValidationError
from .models import CorpusEntry, ResolutionResult, SearchMethod
from .search import (
    FULL_FIELDS,
    GENERAL_TOPICS,
    TEXT_FIELDS,
    SemanticSearchEngine,
    naive_keywords,
    rank_keyword,
    suggest_keywords,
)
from .trace import ResolutionTrace

logger = logging.getLogger(__name__)


class ResolutionStrategy(Protocol):
    """One tier of the cascade."""

    tier: str
    method: SearchMethod

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        """Return the selected entry, or None if this tier found nothing."""


class SemanticAttempt:
    tier = "semantic"
    method: SearchMethod = "semantic"

    def __init__(self, engine: SemanticSearchEngine, *, top_k: int = 5) -> None:
        self.engine = engine
        self.top_k = top_k

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        ranked = self.engine.search(query=question, corpus=corpus, limit=self.top_k)
        if not ranked:
            return None
        best = ranked[0]
        logger.info("resolve.semantic_best id=%s score=%.4f", best.entry.id, best.score)
        return best.entry


class AiKeywordAttempt:
    tier = "ai_keyword"
    method: SearchMethod = "keyword"

    def __init__(self, chat_client: ChatClient | None) -> None:
        self.chat_client = chat_client

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        keywords = suggest_keywords(question, self.chat_client)
        matches = rank_keyword(keywords, corpus, FULL_FIELDS)
        return matches[0] if matches else None


class NaiveKeywordAttempt:
    tier = "naive_keyword"
    method: SearchMethod = "keyword"

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        matches = rank_keyword(naive_keywords(question), corpus, TEXT_FIELDS)
        return matches[0] if matches else None


class GeneralKeywordAttempt:
    tier = "general_keyword"
    method: SearchMethod = "keyword"

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        matches = rank_keyword(GENERAL_TOPICS, corpus, TEXT_FIELDS)
        return matches[0] if matches else None


class RandomPick:
    tier = "random"
    method: SearchMethod = "keyword"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def attempt(
        self, question: str, corpus: Sequence[CorpusEntry]
    ) -> CorpusEntry | None:
        if not corpus:
            return None
        return self._rng.choice(corpus)


def default_strategies(
    *,
    embedding_client: EmbeddingClient | None,
    chat_client: ChatClient | None,
    embedding_table: Mapping[int, Sequence[float]] | None = None,
    top_k: int = 5,
    max_workers: int = 8,
) -> list[ResolutionStrategy]:
    """The four searching tiers, in cascade order."""
    engine = SemanticSearchEngine(
        embedding_client,
        embedding_table,
        max_workers=max_workers,
    )
    return [
        SemanticAttempt(engine, top_k=top_k),
        AiKeywordAttempt(chat_client),
        NaiveKeywordAttempt(),
        GeneralKeywordAttempt(),
    ]


class ResolutionPipeline:
    """Resolve a question to exactly one corpus entry."""

    def __init__(
        self,
        corpus: Sequence[CorpusEntry],
        *,
        embedding_client: EmbeddingClient | None = None,
        chat_client: ChatClient | None = None,
        embedding_table: Mapping[int, Sequence[float]] | None = None,
        top_k: int = 5,
        max_workers: int = 8,
        rng: random.Random | None = None,
        strategies: Sequence[ResolutionStrategy] | None = None,
    ) -> None:
        self.corpus: tuple[CorpusEntry, ...] = tuple(corpus)
        if not self.corpus:
            raise EmptyCorpus("Cannot build a resolution pipeline over an empty corpus.")
        self.embedding_client = embedding_client
        self.chat_client = chat_client
        self.embedding_table: Mapping[int, Sequence[float]] = embedding_table or {}
        if strategies is None:
            strategies = default_strategies(
                embedding_client=embedding_client,
                chat_client=chat_client,
                embedding_table=self.embedding_table,
                top_k=top_k,
                max_workers=max_workers,
            )
        self.strategies: tuple[ResolutionStrategy, ...] = tuple(strategies)
        self.fallback = RandomPick(rng)

    def resolve(self, question: str) -> ResolutionResult:
        if not question or not question.strip():
            raise ValidationError("Question is required")
        question = question.strip()
        trace = ResolutionTrace(question=question)

        for strategy in (*self.strategies, self.fallback):
            try:
                entry = strategy.attempt(question, self.corpus)
            except ProviderError as exc:
                logger.warning("resolve.tier_failed tier=%s err=%s", strategy.tier, exc)
                trace.record(strategy.tier, "failed", str(exc))
                continue

            if entry is None:
                logger.info("resolve.tier_empty tier=%s", strategy.tier)
                trace.record(strategy.tier, "empty")
                continue

            trace.record(strategy.tier, "selected", f"id={entry.id}")
            logger.info(
                "resolve.selected tier=%s method=%s id=%s",
                strategy.tier,
                strategy.method,
                entry.id,
            )
            logger.debug(
                "resolve.path question=%r steps=%s",
                trace.question,
                " | ".join(trace.step_path()),
            )
            return ResolutionResult(
                entry=entry,
                method=strategy.method,
                tier=strategy.tier,
                attempts=tuple(trace.attempts),
            )

        # Only reachable if the corpus were empty, which __init__ forbids.
        raise EmptyCorpus("No entry could be selected from the corpus.")
