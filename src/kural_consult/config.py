"""
Configuration helpers for providers, corpus source and the embedding cache.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias

ProviderName: TypeAlias = Literal["openai", "gemini"]

DEFAULT_DB_PATH = "~/.kural_consult/embeddings.duckdb"
DEFAULT_CORPUS_SOURCE = "~/.kural_consult/kural_metadata.json"
ENV_DB_PATH = "KURAL_DB_PATH"
ENV_CORPUS_SOURCE = "KURAL_CORPUS_SOURCE"

_DEFAULT_EMBEDDING_MODELS: dict[str, str] = {
    "openai": "text-embedding-ada-002",
    "gemini": "gemini-embedding-001",
}
_DEFAULT_CHAT_MODELS: dict[str, str] = {
    "openai": "gpt-3.5-turbo",
    "gemini": "gemini-2.5-flash",
}
_TRUTHY = {"1", "true", "yes", "on"}


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB embedding cache path from override, env var, or default.

    Precedence:
    1) explicit override_path
    2) KURAL_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def resolve_corpus_source(override_source: str | None = None) -> str:
    """Resolve the corpus location; URLs are returned untouched."""
    raw = override_source or os.getenv(ENV_CORPUS_SOURCE) or DEFAULT_CORPUS_SOURCE
    if raw.startswith(("http://", "https://")):
        return raw
    return str(Path(raw).expanduser().resolve())


def resolve_allowed_origins() -> tuple[str, ...]:
    """CORS origins from KURAL_ALLOWED_ORIGINS (comma-separated), default any."""
    raw = os.getenv("KURAL_ALLOWED_ORIGINS", "*")
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or ("*",)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    provider: ProviderName
    corpus_source: str
    corpus_token: str | None
    db_path: str
    embedding_model: str
    embedding_dim: int
    embedding_batch_size: int
    chat_model: str
    openai_base_url: str
    request_timeout: float
    top_k: int
    max_workers: int
    auto_index: bool
    log_level: str
    allowed_origins: tuple[str, ...]


def load_settings(
    *,
    provider: str | None = None,
    corpus_source: str | None = None,
    db_path: str | None = None,
) -> Settings:
    """Build Settings from explicit overrides and KURAL_* environment variables."""
    resolved_provider = (provider or os.getenv("KURAL_PROVIDER", "openai")).lower()
    if resolved_provider not in _DEFAULT_EMBEDDING_MODELS:
        raise ValueError(
            f"Unsupported provider {resolved_provider!r}; expected 'openai' or 'gemini'."
        )

    return Settings(
        provider=resolved_provider,  # type: ignore[arg-type]
        corpus_source=resolve_corpus_source(corpus_source),
        corpus_token=os.getenv("KURAL_CORPUS_TOKEN") or None,
        db_path=resolve_db_path(db_path),
        embedding_model=os.getenv(
            "KURAL_EMBEDDING_MODEL", _DEFAULT_EMBEDDING_MODELS[resolved_provider]
        ),
        embedding_dim=int(os.getenv("KURAL_EMBEDDING_DIM", "768")),
        embedding_batch_size=int(os.getenv("KURAL_EMBEDDING_BATCH_SIZE", "50")),
        chat_model=os.getenv("KURAL_CHAT_MODEL", _DEFAULT_CHAT_MODELS[resolved_provider]),
        openai_base_url=os.getenv("KURAL_OPENAI_BASE_URL", "https://api.openai.com/v1"),
        request_timeout=float(os.getenv("KURAL_REQUEST_TIMEOUT", "10")),
        top_k=int(os.getenv("KURAL_TOP_K", "5")),
        max_workers=int(os.getenv("KURAL_MAX_WORKERS", "8")),
        auto_index=_env_bool("KURAL_AUTO_INDEX", True),
        log_level=os.getenv("KURAL_LOG_LEVEL", "INFO"),
        allowed_origins=resolve_allowed_origins(),
    )
