from __future__ import annotations

import pytest

from kural_consult.errors import ProviderError
from kural_consult.models import CorpusEntry

VOCABULARY = ("patience", "wealth", "love", "friend", "truth")


def keyword_vector(text: str) -> list[float]:
    """Deterministic embedding: occurrence counts of a tiny vocabulary."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in VOCABULARY]


class FakeEmbeddingClient:
    """Keyword-count embeddings that record every call."""

    def __init__(self, model: str = "fake-embed") -> None:
        self.model = model
        self.query_calls: list[str] = []
        self.text_calls: list[list[str]] = []

    def embed(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return keyword_vector(text)

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.text_calls.append(list(texts))
        return [keyword_vector(text) for text in texts]


class FailingEmbeddingClient:
    """Every provider call fails."""

    model = "failing-embed"

    def embed(self, text: str) -> list[float]:
        raise ProviderError("embedding provider disabled")

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        raise ProviderError("embedding provider disabled")


class FakeChatClient:
    """Returns a canned reply and records prompts."""

    def __init__(self, reply: str, model: str = "fake-chat") -> None:
        self.reply = reply
        self.model = model
        self.calls: list[dict[str, object]] = []

    def complete(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "system": system,
                "user": user,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        return self.reply


class FailingChatClient:
    model = "failing-chat"

    def complete(self, **kwargs) -> str:
        raise ProviderError("chat provider disabled")


@pytest.fixture()
def corpus() -> tuple[CorpusEntry, ...]:
    return (
        CorpusEntry(
            id=1,
            source_text="அகர முதல எழுத்தெல்லாம் ஆதி பகவன் முதற்றே உலகு",
            translation="As the letter A is the first of all letters, so the eternal God is first in the world.",
            meaning="God is the source of everything.",
            chapter="The Praise of God",
            section="Virtue",
        ),
        CorpusEntry(
            id=2,
            source_text="அகழ்வாரைத் தாங்கும் நிலம்போலத் தம்மை இகழ்வார்ப் பொறுத்தல் தலை",
            translation="Bear with those who revile you, as the earth bears those who dig it.",
            meaning="Patience towards those who wrong us is the highest strength.",
            chapter="Forbearance",
            section="Virtue",
        ),
        CorpusEntry(
            id=3,
            source_text="அழக்கொண்ட எல்லாம் அழப்போம்",
            translation="Wealth gained through deceit departs in sorrow.",
            meaning="Only honestly earned wealth endures.",
            chapter="Wealth",
            section="Wealth",
        ),
    )


@pytest.fixture()
def fake_embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture()
def failing_embedding_client() -> FailingEmbeddingClient:
    return FailingEmbeddingClient()


@pytest.fixture()
def failing_chat_client() -> FailingChatClient:
    return FailingChatClient()


@pytest.fixture()
def make_chat_client():
    def _make(reply: str) -> FakeChatClient:
        return FakeChatClient(reply)

    return _make
