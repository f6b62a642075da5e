from __future__ import annotations

from typing import Any

import pytest


def openai_node(
    node_id: str,
    parent: str | None,
    text: str | None,
    *,
    role: str = "user",
    create_time: float | None = 1700000000.5,
    hidden: bool = False,
    model: str | None = None,
) -> dict[str, Any]:
    node: dict[str, Any] = {"id": node_id, "parent": parent, "children": []}
    if text is None:
        node["message"] = None
        return node
    metadata: dict[str, Any] = {}
    if hidden:
        metadata["is_visually_hidden_from_conversation"] = True
    if model:
        metadata["model_slug"] = model
    node["message"] = {
        "id": f"msg-{node_id}",
        "author": {"role": role},
        "create_time": create_time,
        "content": {"content_type": "text", "parts": [text]},
        "status": "finished_successfully",
        "metadata": metadata,
    }
    return node


@pytest.fixture
def openai_export() -> list[dict[str, Any]]:
    # mapping deliberately lists the leaf first
    mapping = {
        "b": openai_node("b", "a", "Hello there", role="assistant", create_time=1700000010.25, model="gpt-4o"),
        "root": openai_node("root", None, None),
        "a": openai_node("a", "root", "Hi", create_time=1700000005.125),
        "sys": openai_node("sys", "root", "You are helpful", role="system", hidden=True),
    }
    return [
        {
            "title": "Greeting",
            "create_time": 1700000000.123,
            "update_time": 1700000020.456,
            "mapping": mapping,
            "current_node": "b",
            "conversation_id": "conv-openai-1",
            "id": "conv-openai-1",
        }
    ]


@pytest.fixture
def claude_export() -> list[dict[str, Any]]:
    return [
        {
            "uuid": "conv-claude-1",
            "name": "Planning",
            "summary": "A short planning chat",
            "created_at": "2024-05-01T10:00:00.123456Z",
            "updated_at": "2024-05-01T10:05:00Z",
            "chat_messages": [
                {
                    "uuid": "m1",
                    "sender": "human",
                    "text": "Hi",
                    "content": [{"type": "text", "text": "Hi"}],
                    "created_at": "2024-05-01T10:00:01Z",
                    "attachments": [],
                    "files": [],
                },
                {
                    "uuid": "m2",
                    "sender": "assistant",
                    "text": "Hello",
                    "content": [
                        {"type": "text", "text": "Hello"},
                        {"type": "tool_use", "name": "search"},
                        {"type": "text", "text": "How can I help?"},
                    ],
                    "created_at": "2024-05-01T10:00:02.500Z",
                    "attachments": [{"file_name": "notes.txt", "extracted_content": "x"}],
                    "files": [],
                },
            ],
        }
    ]


@pytest.fixture
def threaded_export() -> list[dict[str, Any]]:
    return [
        {
            "id": "conv-threaded-1",
            "title": "Branches",
            "created_at": 1717000000,
            "updated_at": 1717000300,
            "conversation": {
                "current_message_id": "m3",
                "messages": {
                    "m3": {
                        "id": "m3",
                        "parent_id": "m2",
                        "role": "user",
                        "content": "Thanks",
                        "created_at": 1717000020,
                    },
                    "m1": {
                        "id": "m1",
                        "parent_id": None,
                        "role": "user",
                        "content": "Question?",
                        "created_at": 1717000000,
                    },
                    "m2": {
                        "id": "m2",
                        "parent_id": "m1",
                        "role": "assistant",
                        "content": [{"type": "text", "text": "Answer."}],
                        "created_at": 1717000010.75,
                        "model": "local-7b",
                        "usage": {"input_tokens": 3, "output_tokens": 5},
                    },
                    "m2b": {
                        "id": "m2b",
                        "parent_id": "m1",
                        "role": "assistant",
                        "content": "Abandoned branch",
                        "created_at": 1717000011,
                    },
                },
            },
        }
    ]
