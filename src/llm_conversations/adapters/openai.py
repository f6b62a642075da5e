from __future__ import annotations

from datetime import datetime
from typing import Any

from llm_conversations.adapters.common import require_id, require_object, resolve_times
from llm_conversations.adapters.tree import TreeNode, freeze_nodes, parent_id, walk_active_path
from llm_conversations.models import UNTITLED, Conversation, Format, Message, OpenAIMeta, Role
from llm_conversations.utils import from_epoch_seconds

_ROLES = {"user": Role.USER, "assistant": Role.ASSISTANT, "system": Role.SYSTEM}


def _extract_parts(content: Any) -> str:
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if isinstance(parts, list):
        texts: list[str] = []
        for part in parts:
            if isinstance(part, str):
                texts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])
        return "\n".join(texts)
    text = content.get("text")
    return text if isinstance(text, str) else ""


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _to_node(node_id: str, raw: Any) -> TreeNode[dict]:
    if not isinstance(raw, dict):
        return TreeNode(node_id=node_id, parent=None)
    message = raw.get("message")
    if not isinstance(message, dict):
        return TreeNode(node_id=node_id, parent=parent_id(raw.get("parent")))
    metadata = _as_dict(message.get("metadata"))
    return TreeNode(
        node_id=node_id,
        parent=parent_id(raw.get("parent")),
        message=message,
        hidden=bool(metadata.get("is_visually_hidden_from_conversation")),
        content=_extract_parts(message.get("content")),
    )


def _to_message(node: TreeNode[dict], fallback: datetime) -> Message:
    message = node.message or {}
    metadata = _as_dict(message.get("metadata"))
    raw_role = _as_dict(message.get("author")).get("role")
    extra: dict[str, Any] = {}
    role = _ROLES.get(raw_role) if isinstance(raw_role, str) else None
    if role is None:
        role = Role.ASSISTANT
        if raw_role:
            extra["author_role"] = raw_role
    return Message(
        id=str(message.get("id") or node.node_id),
        role=role,
        content=node.content,
        timestamp=from_epoch_seconds(message.get("create_time")) or fallback,
        metadata=OpenAIMeta(
            model=metadata.get("model_slug"),
            status=message.get("status"),
            extra=extra,
        ),
    )


def normalize(data: list) -> list[Conversation]:
    conversations: list[Conversation] = []
    for index, item in enumerate(data):
        raw = require_object(item, index)
        conversation_id = require_id(raw.get("conversation_id") or raw.get("id"), index)
        created, updated = resolve_times(
            conversation_id,
            from_epoch_seconds(raw.get("create_time")),
            from_epoch_seconds(raw.get("update_time")),
        )
        mapping = _as_dict(raw.get("mapping"))
        nodes = freeze_nodes({str(key): _to_node(str(key), value) for key, value in mapping.items()})
        path = walk_active_path(nodes, raw.get("current_node"))
        conversations.append(
            Conversation(
                id=conversation_id,
                title=str(raw.get("title") or UNTITLED),
                created=created,
                updated=updated,
                format=Format.OPENAI,
                messages=tuple(_to_message(node, created) for node in path),
            )
        )
    return conversations
