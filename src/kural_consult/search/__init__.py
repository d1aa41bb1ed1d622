"""Search helpers for the kural corpus."""

from .keyword import (
    FULL_FIELDS,
    GENERAL_TOPICS,
    TEXT_FIELDS,
    naive_keywords,
    parse_keyword_reply,
    rank_keyword,
    suggest_keywords,
)
from .ranker import rank_scored
from .semantic import SemanticSearchEngine, make_entry_embedder, rank_semantic
from .similarity import cosine_similarity

__all__ = [
    "FULL_FIELDS",
    "GENERAL_TOPICS",
    "TEXT_FIELDS",
    "naive_keywords",
    "parse_keyword_reply",
    "rank_keyword",
    "suggest_keywords",
    "rank_scored",
    "SemanticSearchEngine",
    "make_entry_embedder",
    "rank_semantic",
    "cosine_similarity",
]
