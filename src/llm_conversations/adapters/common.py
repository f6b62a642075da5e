from __future__ import annotations

from datetime import datetime
from typing import Any

from llm_conversations.errors import MalformedConversationError


def require_object(item: Any, index: int) -> dict:
    if not isinstance(item, dict):
        raise MalformedConversationError(f"Conversation {index} is not an object")
    return item


def require_id(value: Any, index: int) -> str:
    if value is None or value == "":
        raise MalformedConversationError(f"Conversation {index} has no id")
    return str(value)


def resolve_times(
    conversation_id: str, created: datetime | None, updated: datetime | None
) -> tuple[datetime, datetime]:
    if created is None and updated is None:
        raise MalformedConversationError(f"Conversation {conversation_id} has no timestamps")
    return created or updated, updated or created


def join_text_blocks(content: Any) -> str:
    """Join plain strings and ``{"type": "text", "text": ...}`` blocks with newlines."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "\n".join(parts)
