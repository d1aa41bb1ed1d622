"""
Chat-completion providers used for AI keyword suggestion.
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
from .errors import ProviderError

_DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
_DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_TIMEOUT = 10.0


class ChatClient(Protocol):
    """Single-turn chat completion."""

    model: str

    def complete(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant reply text."""


class _ChatMessage(BaseModel):
    content: str | None = None


class _ChatChoice(BaseModel):
    message: _ChatMessage


class _ChatCompletionResponse(BaseModel):
    choices: list[_ChatChoice]


class OpenAIChatClient:
    """Chat completions through an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.model = model or os.getenv("KURAL_CHAT_MODEL", _DEFAULT_OPENAI_MODEL)
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

    def complete(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            response = self._http.post("/chat/completions", json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Chat request failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(f"Chat provider returned HTTP {response.status_code}")

        try:
            parsed = _ChatCompletionResponse.model_validate(response.json())
        except ValueError as exc:
            raise ProviderError(f"Malformed chat payload: {exc}") from exc

        if not parsed.choices or parsed.choices[0].message.content is None:
            raise ProviderError("Chat provider returned no content")
        return parsed.choices[0].message.content


class GeminiChatClient:
    """Chat completions via Google GenAI ``generate_content``."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("KURAL_CHAT_MODEL", _DEFAULT_GEMINI_MODEL)
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

    def complete(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=user,
                config={
                    "system_instruction": system,
                    "max_output_tokens": max_tokens,
                    "temperature": temperature,
                },
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise ProviderError(f"Chat request failed: {exc}") from exc

        if response.text is None:
            raise ProviderError("Chat provider returned no content")
        return response.text


def create_chat_client(settings: Settings) -> ChatClient:
    """Build the chat client for the configured provider.

    Raises ValueError when the provider's API key is missing.
    """
    if settings.provider == "gemini":
        return GeminiChatClient(model=settings.chat_model, timeout=settings.request_timeout)
    return OpenAIChatClient(
        model=settings.chat_model,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
    )
