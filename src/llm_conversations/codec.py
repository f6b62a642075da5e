"""
Canonical record <-> Conversation conversion.

A record is the JSON-ready dict form of a conversation: instants are
ISO-8601 strings, metadata is a plain mapping. This is the shape written by
export, kept by both stores, and recognized by the re-import signature.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from llm_conversations.errors import MalformedConversationError
from llm_conversations.models import (
    UNTITLED,
    Conversation,
    Format,
    Message,
    Role,
    metadata_from_dict,
)
from llm_conversations.utils import format_instant, parse_iso_datetime

REIMPORT_KEYS = ("id", "messages", "format", "created", "updated")


def message_to_record(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "role": message.role.value,
        "content": message.content,
        "timestamp": format_instant(message.timestamp),
        "metadata": message.metadata.to_dict(),
    }


def conversation_to_record(conversation: Conversation) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": conversation.id,
        "title": conversation.title,
        "created": format_instant(conversation.created),
        "updated": format_instant(conversation.updated),
        "format": conversation.format.value,
    }
    if conversation.summary is not None:
        record["summary"] = conversation.summary
    record["messages"] = [message_to_record(message) for message in conversation.messages]
    return record


def _coerce_format(value: Any) -> Format:
    try:
        return Format(value)
    except ValueError:
        return Format.NORMALIZED


def _coerce_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        return Role.ASSISTANT


def conversation_from_record(record: Any) -> Conversation:
    if not isinstance(record, dict):
        raise MalformedConversationError("Conversation record must be an object")
    conversation_id = record.get("id")
    if conversation_id in (None, ""):
        raise MalformedConversationError("Conversation record has no id")
    conversation_id = str(conversation_id)

    created = parse_iso_datetime(record.get("created"))
    updated = parse_iso_datetime(record.get("updated"))
    if created is None and updated is None:
        raise MalformedConversationError(f"Conversation {conversation_id} has no timestamps")
    created = created or updated
    updated = updated or created

    fmt = _coerce_format(record.get("format"))
    raw_messages = record.get("messages") or []
    if not isinstance(raw_messages, list):
        raise MalformedConversationError(f"Conversation {conversation_id} messages must be a list")

    messages: list[Message] = []
    for index, raw in enumerate(raw_messages):
        if not isinstance(raw, dict):
            raise MalformedConversationError(
                f"Conversation {conversation_id} message {index} must be an object"
            )
        metadata = raw.get("metadata")
        messages.append(
            Message(
                id=str(raw.get("id") or f"{conversation_id}:{index}"),
                role=_coerce_role(raw.get("role")),
                content=str(raw.get("content") or ""),
                timestamp=parse_iso_datetime(raw.get("timestamp")) or created,
                metadata=metadata_from_dict(fmt, metadata if isinstance(metadata, dict) else None),
            )
        )

    summary = record.get("summary")
    return Conversation(
        id=conversation_id,
        title=str(record.get("title") or UNTITLED),
        created=created,
        updated=updated,
        format=fmt,
        messages=tuple(messages),
        summary=str(summary) if summary is not None else None,
    )


def dumps(records: Iterable[dict[str, Any]] | dict[str, Any], *, pretty: bool = False) -> str:
    if isinstance(records, dict):
        payload: Any = records
    else:
        payload = list(records)
    if pretty:
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
