from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from llm_conversations.codec import conversation_to_record, dumps
from llm_conversations.models import Conversation
from llm_conversations.utils import atomic_write_text, now_utc, slugify


def _as_list(conversations: Conversation | Iterable[Conversation]) -> list[Conversation]:
    if isinstance(conversations, Conversation):
        return [conversations]
    return list(conversations)


def prepare_for_export(conversations: Conversation | Iterable[Conversation]) -> list[dict[str, Any]]:
    return [conversation_to_record(conversation) for conversation in _as_list(conversations)]


def render_export(conversations: Conversation | Iterable[Conversation]) -> str:
    return dumps(prepare_for_export(conversations), pretty=True)


def export_conversations(
    conversations: Conversation | Iterable[Conversation], path: Path
) -> int:
    records = prepare_for_export(conversations)
    atomic_write_text(path, dumps(records, pretty=True))
    return len(records)


def generate_filename(
    conversations: Conversation | Iterable[Conversation], now: datetime | None = None
) -> str:
    items = _as_list(conversations)
    if len(items) == 1:
        return f"{slugify(items[0].title)}.json"
    stamp = (now or now_utc()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"conversations-{stamp}.json"
