from __future__ import annotations

import json

import pytest

from llm_conversations.adapters import parse_conversations
from llm_conversations.codec import conversation_from_record, conversation_to_record
from llm_conversations.detect import detect_format
from llm_conversations.errors import MalformedConversationError
from llm_conversations.export import render_export
from llm_conversations.models import ClaudeMeta, Format, GenericMeta, Role


@pytest.mark.parametrize("fixture", ["openai_export", "claude_export", "threaded_export"])
def test_export_then_import_is_lossless(fixture, request) -> None:
    original = parse_conversations(request.getfixturevalue(fixture))
    payload = json.loads(render_export(original))
    assert detect_format(payload) is Format.NORMALIZED
    assert parse_conversations(payload) == original


def test_exported_record_layout(claude_export) -> None:
    (conversation,) = parse_conversations(claude_export)
    record = conversation_to_record(conversation)
    assert list(record) == ["id", "title", "created", "updated", "format", "summary", "messages"]
    assert record["created"] == "2024-05-01T10:00:00.123Z"
    assert record["format"] == "claude"
    assert record["messages"][0] == {
        "id": "m1",
        "role": "user",
        "content": "Hi",
        "timestamp": "2024-05-01T10:00:01.000Z",
        "metadata": {"attachments": [], "files": []},
    }


def test_summary_is_omitted_when_absent(openai_export) -> None:
    (conversation,) = parse_conversations(openai_export)
    assert "summary" not in conversation_to_record(conversation)


def test_reimport_keeps_original_format_tag(claude_export) -> None:
    (conversation,) = parse_conversations(claude_export)
    (again,) = parse_conversations(json.loads(render_export(conversation)))
    assert again.format is Format.CLAUDE
    assert isinstance(again.messages[1].metadata, ClaudeMeta)


def test_record_with_unknown_tags_is_tolerated() -> None:
    record = {
        "id": "c",
        "title": None,
        "created": "2024-01-01T00:00:00.000Z",
        "updated": "2024-01-02T00:00:00.000Z",
        "format": "gemini",
        "messages": [{"role": "tool", "content": "out", "metadata": {"k": 1}}],
    }
    conversation = conversation_from_record(record)
    assert conversation.format is Format.NORMALIZED
    assert conversation.title == "Untitled Conversation"
    message = conversation.messages[0]
    assert message.id == "c:0"
    assert message.role is Role.ASSISTANT
    assert message.timestamp == conversation.created
    assert message.metadata == GenericMeta(extra={"k": 1})


@pytest.mark.parametrize(
    "record",
    [
        "nope",
        {"id": "", "created": "2024-01-01T00:00:00Z"},
        {"id": "c", "created": "garbage", "updated": None},
        {"id": "c", "created": "2024-01-01T00:00:00Z", "messages": {"a": 1}},
        {"id": "c", "created": "2024-01-01T00:00:00Z", "messages": [1]},
    ],
)
def test_malformed_records(record) -> None:
    with pytest.raises(MalformedConversationError):
        conversation_from_record(record)


def test_non_string_title_survives_reimport(openai_export) -> None:
    openai_export[0]["title"] = 42
    original = parse_conversations(openai_export)
    assert parse_conversations(json.loads(render_export(original))) == original
