"""Tests for semantic ranking, keyword matching and AI keyword suggestion."""

from __future__ import annotations

import pytest

from kural_consult.errors import DimensionMismatch, ProviderError
from kural_consult.models import CorpusEntry, ScoredEntry
from kural_consult.search import (
    FULL_FIELDS,
    GENERAL_TOPICS,
    TEXT_FIELDS,
    SemanticSearchEngine,
    make_entry_embedder,
    naive_keywords,
    parse_keyword_reply,
    rank_keyword,
    rank_scored,
    rank_semantic,
    suggest_keywords,
)
from kural_consult.search.keyword import KEYWORD_MAX_TOKENS, KEYWORD_TEMPERATURE


def _entry(entry_id: int, translation: str = "", meaning: str = "") -> CorpusEntry:
    return CorpusEntry(
        id=entry_id,
        source_text="",
        translation=translation,
        meaning=meaning,
        chapter="",
        section="",
    )


# ---------------------------------------------------------------------------
# Semantic ranking
# ---------------------------------------------------------------------------


def test_comparison_text_joins_fields_in_order(corpus) -> None:
    entry = corpus[1]
    assert entry.comparison_text() == (
        f"{entry.translation} {entry.meaning} {entry.chapter} {entry.section}"
    )


def test_rank_semantic_sorted_and_limited() -> None:
    entries = [_entry(i) for i in range(1, 8)]
    vectors = {
        1: [1.0, 0.0],
        2: [0.0, 1.0],
        3: [1.0, 1.0],
        4: [1.0, 0.2],
        5: [-1.0, 0.0],
        6: [0.5, 0.5],
        7: [1.0, 0.1],
    }

    ranked = rank_semantic(
        [1.0, 0.0], entries, lambda entry: vectors[entry.id], top_k=4, max_workers=3
    )

    assert len(ranked) == 4
    scores = [item.score for item in ranked]
    assert scores == sorted(scores, reverse=True)
    assert ranked[0].entry.id == 1


def test_rank_semantic_ties_keep_corpus_order() -> None:
    entries = [_entry(i) for i in (5, 3, 9, 1)]

    ranked = rank_semantic([1.0, 1.0], entries, lambda entry: [2.0, 2.0], top_k=10)

    assert [item.entry.id for item in ranked] == [5, 3, 9, 1]


def test_rank_semantic_skips_entries_that_fail_to_embed() -> None:
    entries = [_entry(i) for i in (1, 2, 3)]

    def embed(entry: CorpusEntry) -> list[float]:
        if entry.id == 2:
            raise ProviderError("hiccup")
        return [1.0, float(entry.id)]

    ranked = rank_semantic([1.0, 0.0], entries, embed, top_k=5)

    assert {item.entry.id for item in ranked} == {1, 3}


def test_rank_semantic_returns_empty_when_everything_fails() -> None:
    entries = [_entry(i) for i in (1, 2)]

    def embed(entry: CorpusEntry) -> list[float]:
        raise ProviderError("down")

    assert rank_semantic([1.0], entries, embed) == []


def test_rank_semantic_propagates_dimension_mismatch() -> None:
    entries = [_entry(i) for i in (1, 2, 3)]

    with pytest.raises(DimensionMismatch):
        rank_semantic([1.0, 0.0], entries, lambda entry: [1.0, 0.0, 0.0], max_workers=2)


def test_rank_scored_stable_descending() -> None:
    items = [
        ScoredEntry(entry=_entry(1), score=0.2),
        ScoredEntry(entry=_entry(2), score=0.9),
        ScoredEntry(entry=_entry(3), score=0.2),
    ]

    ranked = rank_scored(items, limit=5)

    assert [item.entry.id for item in ranked] == [2, 1, 3]


def test_entry_embedder_prefers_table(fake_embedding_client) -> None:
    entries = [_entry(1, "patience"), _entry(2, "wealth")]
    embed = make_entry_embedder(fake_embedding_client, {1: [9.0, 9.0, 9.0, 9.0, 9.0]})

    assert embed(entries[0]) == [9.0, 9.0, 9.0, 9.0, 9.0]
    assert embed(entries[1]) == [0.0, 1.0, 0.0, 0.0, 0.0]
    assert len(fake_embedding_client.text_calls) == 1


def test_entry_embedder_without_client_raises_provider_error() -> None:
    embed = make_entry_embedder(None, {})

    with pytest.raises(ProviderError):
        embed(_entry(1))


def test_semantic_engine_returns_argmax_entry(corpus, fake_embedding_client) -> None:
    engine = SemanticSearchEngine(fake_embedding_client, max_workers=2)

    ranked = engine.search(query="How do I grow my wealth honestly?", corpus=corpus, limit=5)

    assert ranked[0].entry.id == 3
    assert ranked[0].score == pytest.approx(1.0)
    assert fake_embedding_client.query_calls == ["How do I grow my wealth honestly?"]


def test_semantic_engine_uses_cached_table_only(corpus, fake_embedding_client) -> None:
    table = {entry.id: [1.0, 0.0, 0.0, 0.0, 0.0] for entry in corpus}
    engine = SemanticSearchEngine(fake_embedding_client, table)

    engine.search(query="patience", corpus=corpus, limit=1)

    assert fake_embedding_client.text_calls == []


def test_semantic_engine_query_failure_raises(corpus, failing_embedding_client) -> None:
    engine = SemanticSearchEngine(failing_embedding_client)

    with pytest.raises(ProviderError):
        engine.search(query="anything", corpus=corpus)


# ---------------------------------------------------------------------------
# Keyword matching
# ---------------------------------------------------------------------------


def test_rank_keyword_preserves_corpus_order(corpus) -> None:
    matches = rank_keyword({"wealth", "patience"}, corpus, TEXT_FIELDS)

    assert [entry.id for entry in matches] == [2, 3]


def test_rank_keyword_field_selection(corpus) -> None:
    assert [entry.id for entry in rank_keyword(["forbearance"], corpus, FULL_FIELDS)] == [2]
    assert rank_keyword(["forbearance"], corpus, TEXT_FIELDS) == []


def test_rank_keyword_ignores_blank_keywords(corpus) -> None:
    assert rank_keyword(["", "   "], corpus) == []
    assert rank_keyword([], corpus) == []


def test_rank_keyword_is_case_insensitive(corpus) -> None:
    assert [entry.id for entry in rank_keyword(["DECEIT"], corpus)] == [3]


def test_naive_keywords_keeps_words_longer_than_three() -> None:
    assert naive_keywords("I need patience, now!") == {"need", "patience"}
    assert naive_keywords("why am I sad") == set()


def test_general_topics() -> None:
    assert GENERAL_TOPICS == {
        "virtue",
        "wisdom",
        "life",
        "good",
        "truth",
        "knowledge",
        "patience",
        "kindness",
    }


def test_parse_keyword_reply_cleans_tokens() -> None:
    assert parse_keyword_reply(" Patience, Kindness ,, Virtue,patience, ") == [
        "patience",
        "kindness",
        "virtue",
    ]


def test_suggest_keywords_sends_fixed_prompt(make_chat_client) -> None:
    chat = make_chat_client("Friendship, Loyalty")

    keywords = suggest_keywords("My friend betrayed me", chat)

    assert keywords == ["friendship", "loyalty"]
    call = chat.calls[0]
    assert "Thirukkural" in call["system"]
    assert '"My friend betrayed me"' in call["user"]
    assert call["max_tokens"] == KEYWORD_MAX_TOKENS == 100
    assert call["temperature"] == KEYWORD_TEMPERATURE == 0.3


def test_suggest_keywords_swallows_provider_failure(failing_chat_client) -> None:
    assert suggest_keywords("anything", failing_chat_client) == []


def test_suggest_keywords_without_client() -> None:
    assert suggest_keywords("anything", None) == []
