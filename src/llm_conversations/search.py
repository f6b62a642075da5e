from __future__ import annotations

from typing import Iterable

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process

from llm_conversations.models import Conversation


def by_recency(conversations: Iterable[Conversation]) -> list[Conversation]:
    return sorted(conversations, key=lambda c: c.updated, reverse=True)


def matches_query(conversation: Conversation, query: str) -> bool:
    """Every query word in the title, or every word in a single message."""
    words = query.lower().split()
    if not words:
        return True
    title = conversation.title.lower()
    if all(word in title for word in words):
        return True
    for message in conversation.messages:
        content = message.content.lower()
        if all(word in content for word in words):
            return True
    return False


def filter_conversations(conversations: Iterable[Conversation], query: str) -> list[Conversation]:
    return by_recency(c for c in conversations if matches_query(c, query))


def fuzzy_search(
    conversations: Iterable[Conversation],
    query: str,
    *,
    limit: int = 50,
    score_cutoff: float = 30,
) -> list[Conversation]:
    items = list(conversations)
    if not query.strip():
        return by_recency(items)
    hits = process.extract(
        query,
        [c.title for c in items],
        scorer=fuzz.WRatio,
        processor=default_process,
        limit=limit,
        score_cutoff=score_cutoff,
    )
    return [items[idx] for _, _, idx in hits]
