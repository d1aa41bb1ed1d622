"""
Data models shared across the corpus store, rankers and pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

SearchMethod: TypeAlias = Literal["semantic", "keyword"]
TierOutcome: TypeAlias = Literal["selected", "empty", "failed"]


@dataclass(frozen=True)
class CorpusEntry:
    """One kural with its translation and categorical metadata."""

    id: int
    source_text: str
    translation: str
    meaning: str
    chapter: str
    section: str

    def comparison_text(self) -> str:
        """Text that is embedded for semantic comparison."""
        return " ".join([self.translation, self.meaning, self.chapter, self.section])


@dataclass(frozen=True)
class ScoredEntry:
    """A corpus entry paired with its similarity to the query."""

    entry: CorpusEntry
    score: float


@dataclass(frozen=True)
class TierAttempt:
    """Outcome of one tier of the fallback cascade."""

    tier: str
    outcome: TierOutcome
    detail: str = ""


@dataclass(frozen=True)
class ResolutionResult:
    """The single entry selected for a question and how it was found."""

    entry: CorpusEntry
    method: SearchMethod
    tier: str
    attempts: tuple[TierAttempt, ...] = field(default_factory=tuple)

    def to_response(self) -> dict[str, Any]:
        return {
            "id": self.entry.id,
            "source_text": self.entry.source_text,
            "translation": self.entry.translation,
            "meaning": self.entry.meaning,
            "chapter": self.entry.chapter,
            "section": self.entry.section,
            "method": self.method,
        }


class KuralRecord(BaseModel):
    """Corpus record as published in the object store.

    The store uses the original field names (``kural_number``,
    ``tamil_text``, ``english_translation``); the Python names are accepted
    too so that locally exported corpora load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(validation_alias="kural_number")
    source_text: str = Field(default="", validation_alias="tamil_text")
    translation: str = Field(validation_alias="english_translation")
    meaning: str = ""
    chapter: str = ""
    section: str = ""

    def to_entry(self) -> CorpusEntry:
        return CorpusEntry(
            id=self.id,
            source_text=self.source_text,
            translation=self.translation,
            meaning=self.meaning,
            chapter=self.chapter,
            section=self.section,
        )
