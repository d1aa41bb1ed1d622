"""
KuralConsult - answer a question with the most relevant Thirukkural.

A question is resolved through a fallback cascade: semantic vector search,
AI-suggested keywords, plain question keywords, general wisdom topics and
finally a random pick, so a non-empty corpus always yields one kural.

Example usage:
    >>> from kural_consult import ResolutionPipeline, load_corpus
    >>> pipeline = ResolutionPipeline(load_corpus("kural_metadata.json"))
    >>> result = pipeline.resolve("How do I stay patient?")
    >>> result.method, result.entry.id
"""

from .corpus import CorpusStore, load_corpus
from .errors import (
    CorpusLoadError,
    DimensionMismatch,
    EmptyCorpus,
    KuralConsultError,
    ProviderError,
    ValidationError,
)
from .models import CorpusEntry, ResolutionResult, ScoredEntry, TierAttempt
from .pipeline import ResolutionPipeline, default_strategies
from .service import build_pipeline, get_pipeline, reset_pipeline

__all__ = [
    # Corpus
    "CorpusStore",
    "load_corpus",
    # Errors
    "CorpusLoadError",
    "DimensionMismatch",
    "EmptyCorpus",
    "KuralConsultError",
    "ProviderError",
    "ValidationError",
    # Models
    "CorpusEntry",
    "ResolutionResult",
    "ScoredEntry",
    "TierAttempt",
    # Pipeline
    "ResolutionPipeline",
    "default_strategies",
    "build_pipeline",
    "get_pipeline",
    "reset_pipeline",
]
