from __future__ import annotations

from datetime import datetime
from typing import Any

from llm_conversations.adapters.common import (
    join_text_blocks,
    require_id,
    require_object,
    resolve_times,
)
from llm_conversations.errors import MalformedConversationError
from llm_conversations.models import UNTITLED, ClaudeMeta, Conversation, Format, Message, Role
from llm_conversations.utils import parse_iso_datetime

_SENDERS = {"human": Role.USER, "user": Role.USER, "system": Role.SYSTEM}


def _message_text(message: dict) -> str:
    content = message.get("content")
    if isinstance(content, list) and content:
        return join_text_blocks(content)
    text = message.get("text")
    return text if isinstance(text, str) else ""


def _to_message(conversation_id: str, index: int, raw: Any, fallback: datetime) -> Message:
    if not isinstance(raw, dict):
        raise MalformedConversationError(
            f"Conversation {conversation_id} message {index} is not an object"
        )
    sender = raw.get("sender")
    return Message(
        id=str(raw.get("uuid") or f"{conversation_id}:{index}"),
        role=_SENDERS.get(sender, Role.ASSISTANT) if isinstance(sender, str) else Role.ASSISTANT,
        content=_message_text(raw),
        timestamp=parse_iso_datetime(raw.get("created_at")) or fallback,
        metadata=ClaudeMeta(attachments=raw.get("attachments"), files=raw.get("files")),
    )


def normalize(data: list) -> list[Conversation]:
    conversations: list[Conversation] = []
    for index, item in enumerate(data):
        raw = require_object(item, index)
        conversation_id = require_id(raw.get("uuid"), index)
        created, updated = resolve_times(
            conversation_id,
            parse_iso_datetime(raw.get("created_at")),
            parse_iso_datetime(raw.get("updated_at")),
        )
        chat_messages = raw.get("chat_messages") or []
        if not isinstance(chat_messages, list):
            raise MalformedConversationError(f"Conversation {conversation_id} chat_messages must be a list")
        summary = raw.get("summary")
        conversations.append(
            Conversation(
                id=conversation_id,
                title=str(raw.get("name") or UNTITLED),
                created=created,
                updated=updated,
                format=Format.CLAUDE,
                messages=tuple(
                    _to_message(conversation_id, position, message, created)
                    for position, message in enumerate(chat_messages)
                ),
                summary=str(summary) if summary else None,
            )
        )
    return conversations
