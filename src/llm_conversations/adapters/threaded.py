"""
Threaded tree exports.

Shape (one object per conversation)::

    {
      "id": "...", "title": "...", "summary": "...",
      "created_at": 1717000000, "updated_at": 1717000300,
      "conversation": {
        "current_message_id": "m3",
        "messages": {
          "m1": {"id": "m1", "parent_id": null, "role": "user",
                 "content": "Hi", "created_at": 1717000000},
          "m2": {"id": "m2", "parent_id": "m1", "role": "assistant",
                 "content": [{"type": "text", "text": "Hello"}],
                 "created_at": 1717000005, "model": "...",
                 "usage": {"input_tokens": 3, "output_tokens": 5}}
        }
      }
    }
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from llm_conversations.adapters.common import (
    join_text_blocks,
    require_id,
    require_object,
    resolve_times,
)
from llm_conversations.adapters.tree import TreeNode, freeze_nodes, parent_id, walk_active_path
from llm_conversations.models import UNTITLED, Conversation, Format, Message, Role, ThreadedMeta
from llm_conversations.utils import from_epoch_seconds

_ROLES = {"user": Role.USER, "human": Role.USER, "assistant": Role.ASSISTANT, "system": Role.SYSTEM}


def _to_node(node_id: str, raw: Any) -> TreeNode[dict]:
    if not isinstance(raw, dict):
        return TreeNode(node_id=node_id, parent=None)
    return TreeNode(
        node_id=node_id,
        parent=parent_id(raw.get("parent_id")),
        message=raw,
        hidden=bool(raw.get("hidden")),
        content=join_text_blocks(raw.get("content")),
    )


def _to_message(node: TreeNode[dict], fallback: datetime) -> Message:
    raw = node.message or {}
    raw_role = raw.get("role")
    extra: dict[str, Any] = {}
    role = _ROLES.get(raw_role) if isinstance(raw_role, str) else None
    if role is None:
        role = Role.ASSISTANT
        if raw_role:
            extra["author_role"] = raw_role
    usage = raw.get("usage")
    return Message(
        id=str(raw.get("id") or node.node_id),
        role=role,
        content=node.content,
        timestamp=from_epoch_seconds(raw.get("created_at")) or fallback,
        metadata=ThreadedMeta(
            model=raw.get("model"),
            usage=usage if isinstance(usage, dict) else None,
            extra=extra,
        ),
    )


def normalize(data: list) -> list[Conversation]:
    conversations: list[Conversation] = []
    for index, item in enumerate(data):
        raw = require_object(item, index)
        conversation_id = require_id(raw.get("id"), index)
        created, updated = resolve_times(
            conversation_id,
            from_epoch_seconds(raw.get("created_at")),
            from_epoch_seconds(raw.get("updated_at")),
        )
        inner = raw.get("conversation")
        inner = inner if isinstance(inner, dict) else {}
        messages = inner.get("messages")
        messages = messages if isinstance(messages, dict) else {}
        nodes = freeze_nodes({str(key): _to_node(str(key), value) for key, value in messages.items()})
        path = walk_active_path(nodes, inner.get("current_message_id"))
        summary = raw.get("summary")
        conversations.append(
            Conversation(
                id=conversation_id,
                title=str(raw.get("title") or UNTITLED),
                created=created,
                updated=updated,
                format=Format.THREADED,
                messages=tuple(_to_message(node, created) for node in path),
                summary=str(summary) if summary else None,
            )
        )
    return conversations
