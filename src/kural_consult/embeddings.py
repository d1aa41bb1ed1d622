"""
Embedding providers for vector-based semantic search.

Two interchangeable clients satisfy the same ``embed``/``embed_texts``
contract: an OpenAI-compatible HTTP client and a Google GenAI client.
Every transport, status or payload problem surfaces as ``ProviderError``.
"""

from __future__ import annotations

import os
from typing import Any, Protocol

import httpx
from google.genai import Client as GenAIClient
from google.genai import errors as genai_errors
from google.genai.types import HttpOptions
from pydantic import BaseModel

from .config import Settings
from .errors import ProviderError, ValidationError

_DEFAULT_OPENAI_MODEL = "text-embedding-ada-002"
_DEFAULT_GEMINI_MODEL = "gemini-embedding-001"
_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_DIM = 768
_DEFAULT_BATCH_SIZE = 50
_DEFAULT_TIMEOUT = 10.0


class EmbeddingClient(Protocol):
    """Text in, fixed-length vector out."""

    model: str

    def embed(self, text: str) -> list[float]:
        """Embed a single query text."""

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed corpus texts, preserving input order."""


def _require_text(text: str) -> str:
    if not text or not text.strip():
        raise ValidationError("Cannot embed empty text.")
    return text


class _EmbeddingDatum(BaseModel):
    embedding: list[float]
    index: int = 0


class _EmbeddingResponse(BaseModel):
    data: list[_EmbeddingDatum]


class OpenAIEmbeddingClient:
    """Generate embeddings through an OpenAI-compatible ``/embeddings`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.model = model or os.getenv("KURAL_EMBEDDING_MODEL", _DEFAULT_OPENAI_MODEL)
        self.batch_size = batch_size or int(
            os.getenv("KURAL_EMBEDDING_BATCH_SIZE", str(_DEFAULT_BATCH_SIZE))
        )

        if http_client is not None:
            self._http = http_client
        else:
            resolved_key = api_key or os.getenv("OPENAI_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "OPENAI_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._http = httpx.Client(
                base_url=base_url or os.getenv("KURAL_OPENAI_BASE_URL", _DEFAULT_BASE_URL),
                headers={"Authorization": f"Bearer {resolved_key}"},
                timeout=timeout or _DEFAULT_TIMEOUT,
            )

    def close(self) -> None:
        self._http.close()

    def embed(self, text: str) -> list[float]:
        """Embed a single query text."""
        return self._request(_require_text(text))[0]

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts in batches.

        Returns a list of embedding vectors in the same order as *texts*.
        """
        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = [_require_text(text) for text in texts[start : start + self.batch_size]]
            all_embeddings.extend(self._request(batch))
        return all_embeddings

    def _request(self, payload: str | list[str]) -> list[list[float]]:
        expected = 1 if isinstance(payload, str) else len(payload)
        try:
            response = self._http.post(
                "/embeddings", json={"model": self.model, "input": payload}
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Embedding request failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                f"Embedding provider returned HTTP {response.status_code}"
            )

        try:
            parsed = _EmbeddingResponse.model_validate(response.json())
        except ValueError as exc:
            raise ProviderError(f"Malformed embedding payload: {exc}") from exc

        if len(parsed.data) != expected:
            raise ProviderError(
                f"Embedding provider returned {len(parsed.data)} vectors for {expected} inputs"
            )
        ordered = sorted(parsed.data, key=lambda datum: datum.index)
        return [datum.embedding for datum in ordered]


class GeminiEmbeddingClient:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("KURAL_EMBEDDING_MODEL", _DEFAULT_GEMINI_MODEL)
        self.dim = dim or int(os.getenv("KURAL_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.batch_size = batch_size or int(
            os.getenv("KURAL_EMBEDDING_BATCH_SIZE", str(_DEFAULT_BATCH_SIZE))
        )

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(
                api_key=resolved_key,
                http_options=HttpOptions(timeout=int((timeout or _DEFAULT_TIMEOUT) * 1000)),
            )

    def embed(self, text: str) -> list[float]:
        """Embed a single query text for retrieval."""
        vectors = self._embed([_require_text(text)], task_type="RETRIEVAL_QUERY")
        return vectors[0]

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = [_require_text(text) for text in texts[start : start + self.batch_size]]
            all_embeddings.extend(self._embed(batch, task_type="RETRIEVAL_DOCUMENT"))
        return all_embeddings

    def _embed(self, contents: list[str], *, task_type: str) -> list[list[float]]:
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=contents,
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise ProviderError(f"Embedding request failed: {exc}") from exc

        embeddings = getattr(result, "embeddings", None) or []
        if len(embeddings) != len(contents):
            raise ProviderError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(contents)} inputs"
            )
        vectors: list[list[float]] = []
        for emb in embeddings:
            if not emb.values:
                raise ProviderError("Embedding provider returned an empty vector")
            vectors.append(list(emb.values))
        return vectors


def create_embedding_client(settings: Settings) -> EmbeddingClient:
    """Build the embedding client for the configured provider.

    Raises ValueError when the provider's API key is missing.
    """
    if settings.provider == "gemini":
        return GeminiEmbeddingClient(
            model=settings.embedding_model,
            dim=settings.embedding_dim,
            batch_size=settings.embedding_batch_size,
            timeout=settings.request_timeout,
        )
    return OpenAIEmbeddingClient(
        model=settings.embedding_model,
        base_url=settings.openai_base_url,
        batch_size=settings.embedding_batch_size,
        timeout=settings.request_timeout,
    )
