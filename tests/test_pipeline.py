"""Tests for the cascading resolution pipeline."""

from __future__ import annotations

import json
import random

import httpx
import pytest

from kural_consult.embeddings import OpenAIEmbeddingClient
from kural_consult.errors import DimensionMismatch, EmptyCorpus, ProviderError, ValidationError
from kural_consult.models import CorpusEntry
from kural_consult.pipeline import (
    GeneralKeywordAttempt,
    NaiveKeywordAttempt,
    ResolutionPipeline,
    default_strategies,
)

RAIN_ENTRY = CorpusEntry(
    id=11,
    source_text="வான்நின்று உலகம் வழங்கி வருதலால்",
    translation="Rain sustains the world.",
    meaning="Without rain nothing grows.",
    chapter="The Excellence of Rain",
    section="Virtue",
)


class ExplodingStrategy:
    tier = "exploding"
    method = "keyword"

    def attempt(self, question, corpus):
        raise ProviderError("boom")


class ChooseFirst:
    tier = "first"
    method = "keyword"

    def attempt(self, question, corpus):
        return corpus[0]


def _tiers(result) -> list[tuple[str, str]]:
    return [(attempt.tier, attempt.outcome) for attempt in result.attempts]


def test_semantic_tier_selects_most_similar_entry(corpus, fake_embedding_client) -> None:
    pipeline = ResolutionPipeline(corpus, embedding_client=fake_embedding_client)

    result = pipeline.resolve("How can I grow my wealth honestly?")

    assert result.entry.id == 3
    assert result.method == "semantic"
    assert result.tier == "semantic"
    assert _tiers(result) == [("semantic", "selected")]


def test_ai_keywords_used_when_semantic_fails(
    corpus, failing_embedding_client, make_chat_client
) -> None:
    chat = make_chat_client("sorrow, forbearance")
    pipeline = ResolutionPipeline(
        corpus, embedding_client=failing_embedding_client, chat_client=chat
    )

    result = pipeline.resolve("Someone keeps insulting me")

    assert result.entry.id == 2
    assert result.method == "keyword"
    assert result.tier == "ai_keyword"
    assert _tiers(result) == [("semantic", "failed"), ("ai_keyword", "selected")]
    assert len(chat.calls) == 1


def test_ai_keywords_search_chapter_and_section(corpus, make_chat_client) -> None:
    pipeline = ResolutionPipeline(corpus, chat_client=make_chat_client("Forbearance"))

    result = pipeline.resolve("What do I do with anger?")

    assert result.entry.id == 2
    assert result.tier == "ai_keyword"


def test_naive_keywords_when_providers_fail(
    corpus, failing_embedding_client, failing_chat_client
) -> None:
    pipeline = ResolutionPipeline(
        corpus,
        embedding_client=failing_embedding_client,
        chat_client=failing_chat_client,
    )

    result = pipeline.resolve("I need patience")

    assert result.entry.id == 2
    assert result.method == "keyword"
    assert result.tier == "naive_keyword"
    assert _tiers(result) == [
        ("semantic", "failed"),
        ("ai_keyword", "empty"),
        ("naive_keyword", "selected"),
    ]


def test_general_topics_when_question_words_do_not_match(
    corpus, failing_embedding_client, failing_chat_client
) -> None:
    pipeline = ResolutionPipeline(
        corpus,
        embedding_client=failing_embedding_client,
        chat_client=failing_chat_client,
    )

    result = pipeline.resolve("xyzzy qwerty")

    assert result.entry.id == 2
    assert result.method == "keyword"
    assert result.tier == "general_keyword"


def test_random_pick_when_nothing_matches() -> None:
    pipeline = ResolutionPipeline([RAIN_ENTRY])

    result = pipeline.resolve("xyzzy qwerty")

    assert result.entry == RAIN_ENTRY
    assert result.method == "keyword"
    assert result.tier == "random"
    assert [attempt.tier for attempt in result.attempts] == [
        "semantic",
        "ai_keyword",
        "naive_keyword",
        "general_keyword",
        "random",
    ]


def test_random_pick_is_reproducible_with_seeded_rng(corpus) -> None:
    first = ResolutionPipeline(corpus, strategies=[], rng=random.Random(42))
    second = ResolutionPipeline(corpus, strategies=[], rng=random.Random(42))

    picks = [first.resolve("anything").entry.id for _ in range(5)]

    assert picks == [second.resolve("anything").entry.id for _ in range(5)]
    assert set(picks) <= {entry.id for entry in corpus}


def test_blank_question_is_rejected(corpus) -> None:
    pipeline = ResolutionPipeline(corpus)

    with pytest.raises(ValidationError):
        pipeline.resolve("")
    with pytest.raises(ValidationError):
        pipeline.resolve("   \n")


def test_empty_corpus_is_rejected() -> None:
    with pytest.raises(EmptyCorpus):
        ResolutionPipeline([])


def test_dimension_mismatch_propagates(corpus, fake_embedding_client) -> None:
    pipeline = ResolutionPipeline(
        corpus,
        embedding_client=fake_embedding_client,
        embedding_table={entry.id: [1.0, 0.0] for entry in corpus},
    )

    with pytest.raises(DimensionMismatch):
        pipeline.resolve("patience please")


def test_provider_error_in_custom_strategy_moves_on(corpus) -> None:
    pipeline = ResolutionPipeline(corpus, strategies=[ExplodingStrategy(), ChooseFirst()])

    result = pipeline.resolve("anything")

    assert result.entry.id == 1
    assert result.tier == "first"
    assert result.attempts[0].outcome == "failed"
    assert result.attempts[0].detail == "boom"


def test_cached_table_serves_semantic_tier(corpus, fake_embedding_client) -> None:
    table = {
        1: [0.0, 0.0, 1.0, 0.0, 0.0],
        2: [1.0, 0.0, 0.0, 0.0, 0.0],
        3: [0.0, 1.0, 0.0, 0.0, 0.0],
    }
    pipeline = ResolutionPipeline(
        corpus, embedding_client=fake_embedding_client, embedding_table=table
    )

    result = pipeline.resolve("Tell me about love")

    assert result.entry.id == 1
    assert fake_embedding_client.text_calls == []


def test_result_response_shape(corpus, fake_embedding_client) -> None:
    pipeline = ResolutionPipeline(corpus, embedding_client=fake_embedding_client)

    body = pipeline.resolve("wealth").to_response()

    assert body == {
        "id": 3,
        "source_text": corpus[2].source_text,
        "translation": corpus[2].translation,
        "meaning": corpus[2].meaning,
        "chapter": "Wealth",
        "section": "Wealth",
        "method": "semantic",
    }


def test_default_strategies_order() -> None:
    strategies = default_strategies(embedding_client=None, chat_client=None)

    assert [strategy.tier for strategy in strategies] == [
        "semantic",
        "ai_keyword",
        "naive_keyword",
        "general_keyword",
    ]


def test_keyword_tiers_pick_first_match_in_corpus_order(corpus) -> None:
    assert NaiveKeywordAttempt().attempt("wealth and patience", corpus).id == 2
    assert GeneralKeywordAttempt().attempt("ignored", corpus[2:]) is None


def test_entry_without_text_is_skipped_by_semantic_tier() -> None:
    blank = CorpusEntry(
        id=20, source_text="", translation="", meaning="", chapter="", section=""
    )

    def handler(request: httpx.Request) -> httpx.Response:
        texts = json.loads(request.content)["input"]
        count = 1 if isinstance(texts, str) else len(texts)
        data = [{"embedding": [1.0, 0.0], "index": idx} for idx in range(count)]
        return httpx.Response(200, json={"data": data})

    client = OpenAIEmbeddingClient(
        model="embed-test",
        http_client=httpx.Client(
            base_url="https://llm.test/v1", transport=httpx.MockTransport(handler)
        ),
    )
    pipeline = ResolutionPipeline([blank, RAIN_ENTRY], embedding_client=client)

    result = pipeline.resolve("What about rain?")

    assert result.entry == RAIN_ENTRY
    assert result.tier == "semantic"
