"""
Keyword matching over the corpus, plus AI keyword suggestion.
"""

from __future__ import annotations

import logging
import re
import string
from typing import Iterable, Sequence

from ..chat import ChatClient
from ..errors import ProviderError
from ..models import CorpusEntry

logger = logging.getLogger(__name__)

FULL_FIELDS: tuple[str, ...] = ("translation", "meaning", "chapter", "section")
TEXT_FIELDS: tuple[str, ...] = ("translation", "meaning")

GENERAL_TOPICS: frozenset[str] = frozenset(
    {"virtue", "wisdom", "life", "good", "truth", "knowledge", "patience", "kindness"}
)

KEYWORD_SYSTEM_PROMPT = (
    "You are an expert on Thiruvalluvar's Thirukkural. Given a user's question or "
    "life problem, analyze it and identify the key themes, emotions, and life aspects "
    "involved. Then suggest which categories or topics from Thirukkural would be most "
    "relevant. Focus on themes like: virtue (aram), wealth/prosperity (porul), "
    "love/pleasure (inbam), wisdom, friendship, family, leadership, justice, patience, "
    "kindness, truthfulness, etc. Respond with 3-5 relevant keywords that would help "
    "match the question to appropriate Kurals."
)

KEYWORD_USER_PROMPT = (
    'Question: "{question}"\n\n'
    "Please provide 3-5 relevant keywords that would help find the most appropriate "
    "Thirukkural for this question. Respond only with the keywords separated by commas."
)

KEYWORD_MAX_TOKENS = 100
KEYWORD_TEMPERATURE = 0.3

_WORD_EDGE_CHARS = string.punctuation + "“”‘’"


def entry_text(entry: CorpusEntry, text_fields: Sequence[str]) -> str:
    """Lower-cased, space-joined selection of an entry's fields."""
    return " ".join(str(getattr(entry, name)) for name in text_fields).lower()


def rank_keyword(
    keywords: Iterable[str],
    corpus: Sequence[CorpusEntry],
    text_fields: Sequence[str] = TEXT_FIELDS,
) -> list[CorpusEntry]:
    """Return entries containing any keyword as a substring, in corpus order."""
    terms = [kw for kw in (k.strip().lower() for k in keywords) if kw]
    if not terms:
        return []
    return [
        entry
        for entry in corpus
        if any(term in entry_text(entry, text_fields) for term in terms)
    ]


def naive_keywords(question: str) -> set[str]:
    """Question words longer than three characters, lower-cased."""
    words = (word.strip(_WORD_EDGE_CHARS) for word in re.split(r"\s+", question.lower()))
    return {word for word in words if len(word) > 3}


def parse_keyword_reply(reply: str) -> list[str]:
    """Split a comma-separated model reply into clean lower-case keywords."""
    keywords: list[str] = []
    for raw in reply.lower().split(","):
        keyword = raw.strip()
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return keywords


def suggest_keywords(question: str, chat_client: ChatClient | None) -> list[str]:
    """Ask the chat provider for 3-5 keywords; any failure yields an empty list."""
    if chat_client is None:
        logger.info("keywords.ai_skipped reason=no_chat_client")
        return []
    try:
        reply = chat_client.complete(
            system=KEYWORD_SYSTEM_PROMPT,
            user=KEYWORD_USER_PROMPT.format(question=question),
            max_tokens=KEYWORD_MAX_TOKENS,
            temperature=KEYWORD_TEMPERATURE,
        )
    except ProviderError as exc:
        logger.warning("keywords.ai_failed err=%s", exc)
        return []
    keywords = parse_keyword_reply(reply)
    logger.debug("keywords.ai_suggested keywords=%s", keywords)
    return keywords
