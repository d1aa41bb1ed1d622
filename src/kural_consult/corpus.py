"""
Corpus store: loads the kural collection from an object store URL or a local file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from .errors import CorpusLoadError, EmptyCorpus
from .models import CorpusEntry, KuralRecord

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _fetch_payload(
    source: str,
    *,
    token: str | None,
    timeout: float,
    http_client: httpx.Client | None,
) -> Any:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    client = http_client or httpx.Client(timeout=timeout)
    try:
        response = client.get(source, headers=headers)
    except httpx.HTTPError as exc:
        raise CorpusLoadError(f"Failed to fetch kural metadata: {exc}") from exc
    finally:
        if http_client is None:
            client.close()

    if not response.is_success:
        raise CorpusLoadError(
            f"Failed to fetch kural metadata: HTTP {response.status_code}"
        )
    try:
        return response.json()
    except ValueError as exc:
        raise CorpusLoadError(f"Kural metadata is not valid JSON: {exc}") from exc


def _read_payload(source: str) -> Any:
    path = Path(source)
    if not path.is_file():
        raise CorpusLoadError(f"No such corpus file: {source}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise CorpusLoadError(f"Kural metadata is not valid JSON: {exc}") from exc


def parse_corpus(payload: Any) -> tuple[CorpusEntry, ...]:
    """Validate a decoded JSON payload into ordered corpus entries."""
    if not isinstance(payload, list):
        raise CorpusLoadError("Kural metadata must be a JSON array of records.")

    entries: list[CorpusEntry] = []
    seen_ids: set[int] = set()
    for idx, raw in enumerate(payload):
        try:
            entry = KuralRecord.model_validate(raw).to_entry()
        except PydanticValidationError as exc:
            raise CorpusLoadError(f"Invalid kural record at index {idx}: {exc}") from exc
        if entry.id in seen_ids:
            raise CorpusLoadError(f"Duplicate kural id {entry.id} at index {idx}.")
        seen_ids.add(entry.id)
        entries.append(entry)

    if not entries:
        raise EmptyCorpus("Kural corpus is empty.")
    return tuple(entries)


def load_corpus(
    source: str,
    *,
    token: str | None = None,
    timeout: float = 10.0,
    http_client: httpx.Client | None = None,
) -> tuple[CorpusEntry, ...]:
    """Load the corpus from *source*, a URL or a JSON file path."""
    if _is_url(source):
        payload = _fetch_payload(
            source, token=token, timeout=timeout, http_client=http_client
        )
    else:
        payload = _read_payload(source)
    entries = parse_corpus(payload)
    logger.info("corpus.loaded source=%s entries=%d", source, len(entries))
    return entries


class CorpusStore:
    """Process-wide, read-only holder for the loaded corpus."""

    def __init__(
        self,
        source: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.source = source
        self._token = token
        self._timeout = timeout
        self._http_client = http_client
        self._entries: tuple[CorpusEntry, ...] | None = None

    def load(self) -> tuple[CorpusEntry, ...]:
        if self._entries is None:
            self._entries = load_corpus(
                self.source,
                token=self._token,
                timeout=self._timeout,
                http_client=self._http_client,
            )
        return self._entries
