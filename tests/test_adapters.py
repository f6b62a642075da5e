from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import openai_node
from llm_conversations.adapters import get_normalizer, parse_conversations
from llm_conversations.errors import MalformedConversationError, UnrecognizedFormatError
from llm_conversations.models import (
    UNTITLED,
    ClaudeMeta,
    Format,
    OpenAIMeta,
    Role,
    ThreadedMeta,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_openai_active_path(openai_export) -> None:
    (conversation,) = parse_conversations(openai_export)
    assert conversation.id == "conv-openai-1"
    assert conversation.title == "Greeting"
    assert conversation.format is Format.OPENAI
    assert conversation.created == _utc(2023, 11, 14, 22, 13, 20, 123000)
    assert conversation.updated == _utc(2023, 11, 14, 22, 13, 40, 456000)
    assert [m.role for m in conversation.messages] == [Role.USER, Role.ASSISTANT]
    assert [m.content for m in conversation.messages] == ["Hi", "Hello there"]
    assert [m.id for m in conversation.messages] == ["msg-a", "msg-b"]
    assert conversation.messages[0].timestamp == _utc(2023, 11, 14, 22, 13, 25, 125000)
    assert conversation.messages[1].metadata == OpenAIMeta(model="gpt-4o", status="finished_successfully")


def test_openai_abandoned_branch_is_ignored() -> None:
    mapping = {
        "root": openai_node("root", None, None),
        "q": openai_node("q", "root", "Question"),
        "old": openai_node("old", "q", "First answer", role="assistant"),
        "new": openai_node("new", "q", "Regenerated answer", role="assistant"),
    }
    data = [{"id": "c", "title": "t", "create_time": 1, "update_time": 2, "mapping": mapping, "current_node": "new"}]
    (conversation,) = parse_conversations(data)
    assert [m.content for m in conversation.messages] == ["Question", "Regenerated answer"]


def test_openai_tool_role_becomes_assistant_and_keeps_original_role() -> None:
    mapping = {
        "a": openai_node("a", None, "Run it"),
        "t": openai_node("t", "a", "tool output", role="tool"),
    }
    data = [{"id": "c", "create_time": 1, "mapping": mapping, "current_node": "t"}]
    (conversation,) = parse_conversations(data)
    tool = conversation.messages[1]
    assert tool.role is Role.ASSISTANT
    assert tool.metadata.extra == {"author_role": "tool"}
    assert conversation.title == UNTITLED


def test_openai_message_without_timestamp_uses_conversation_created() -> None:
    mapping = {"a": openai_node("a", None, "Hi", create_time=None)}
    data = [{"id": "c", "create_time": 1700000000, "mapping": mapping, "current_node": "a"}]
    (conversation,) = parse_conversations(data)
    assert conversation.messages[0].timestamp == conversation.created
    assert conversation.updated == conversation.created


def test_openai_parts_may_hold_text_objects() -> None:
    node = openai_node("a", None, "ignored")
    node["message"]["content"] = {"content_type": "multimodal_text", "parts": [{"text": "one"}, "two", {"asset": 1}]}
    data = [{"id": "c", "create_time": 1, "mapping": {"a": node}, "current_node": "a"}]
    (conversation,) = parse_conversations(data)
    assert conversation.messages[0].content == "one\ntwo"


def test_claude_linear_messages(claude_export) -> None:
    (conversation,) = parse_conversations(claude_export)
    assert conversation.format is Format.CLAUDE
    assert conversation.title == "Planning"
    assert conversation.summary == "A short planning chat"
    assert conversation.created == _utc(2024, 5, 1, 10, 0, 0, 123000)
    assert [m.role for m in conversation.messages] == [Role.USER, Role.ASSISTANT]
    assert conversation.messages[1].content == "Hello\nHow can I help?"
    assert conversation.messages[1].timestamp == _utc(2024, 5, 1, 10, 0, 2, 500000)
    assert conversation.messages[1].metadata == ClaudeMeta(
        attachments=[{"file_name": "notes.txt", "extracted_content": "x"}], files=[]
    )


def test_claude_falls_back_to_text_field() -> None:
    data = [
        {
            "uuid": "c",
            "name": "",
            "created_at": "2024-01-01T00:00:00Z",
            "chat_messages": [{"uuid": "m", "sender": "human", "text": "plain", "content": []}],
        }
    ]
    (conversation,) = parse_conversations(data)
    assert conversation.title == UNTITLED
    assert conversation.summary is None
    assert conversation.messages[0].content == "plain"


def test_claude_missing_message_fields_get_defaults() -> None:
    data = [
        {
            "uuid": "c",
            "updated_at": "2024-01-01T00:00:00+02:00",
            "chat_messages": [{"sender": "assistant"}],
        }
    ]
    (conversation,) = parse_conversations(data)
    message = conversation.messages[0]
    assert message.id == "c:0"
    assert message.content == ""
    assert message.timestamp == _utc(2023, 12, 31, 22, 0, 0)
    assert conversation.created == conversation.updated


def test_threaded_follows_current_pointer(threaded_export) -> None:
    (conversation,) = parse_conversations(threaded_export)
    assert conversation.format is Format.THREADED
    assert [m.id for m in conversation.messages] == ["m1", "m2", "m3"]
    assert [m.content for m in conversation.messages] == ["Question?", "Answer.", "Thanks"]
    answer = conversation.messages[1]
    assert answer.timestamp == _utc(2024, 5, 29, 16, 26, 50, 750000)
    assert answer.metadata == ThreadedMeta(model="local-7b", usage={"input_tokens": 3, "output_tokens": 5})


def test_threaded_hidden_message_is_skipped(threaded_export) -> None:
    threaded_export[0]["conversation"]["messages"]["m2"]["hidden"] = True
    (conversation,) = parse_conversations(threaded_export)
    assert [m.id for m in conversation.messages] == ["m1", "m3"]


def test_each_conversation_is_normalized(claude_export) -> None:
    second = dict(claude_export[0], uuid="conv-claude-2", name="Second")
    conversations = parse_conversations(claude_export + [second])
    assert [c.id for c in conversations] == ["conv-claude-1", "conv-claude-2"]


@pytest.mark.parametrize(
    "data",
    [
        [{"uuid": "", "chat_messages": [], "created_at": "2024-01-01T00:00:00Z"}],
        [{"uuid": "c", "chat_messages": []}],
        [{"uuid": "c", "chat_messages": [], "created_at": "not a date"}],
        [{"uuid": "c", "chat_messages": ["text"], "created_at": "2024-01-01T00:00:00Z"}],
    ],
)
def test_malformed_claude_conversations(data) -> None:
    with pytest.raises(MalformedConversationError):
        parse_conversations(data)


def test_malformed_later_element_fails_whole_batch(claude_export) -> None:
    with pytest.raises(MalformedConversationError):
        parse_conversations(claude_export + ["not an object"])


def test_openai_without_any_timestamp_is_malformed() -> None:
    data = [{"id": "c", "mapping": {}, "current_node": None}]
    with pytest.raises(MalformedConversationError):
        parse_conversations(data)


def test_get_normalizer_accepts_names() -> None:
    assert get_normalizer(" Claude ") is get_normalizer(Format.CLAUDE)
    with pytest.raises(ValueError):
        get_normalizer("gemini")


def test_unknown_payload_is_rejected() -> None:
    with pytest.raises(UnrecognizedFormatError):
        parse_conversations([{"messages": []}])


def test_claude_non_string_sender_falls_back_to_assistant(claude_export) -> None:
    claude_export[0]["chat_messages"][0]["sender"] = ["human"]
    (conversation,) = parse_conversations(claude_export)
    assert conversation.messages[0].role is Role.ASSISTANT


def test_openai_non_string_role_falls_back_to_assistant() -> None:
    node = openai_node("a", None, "Hi")
    node["message"]["author"] = {"role": {"r": 1}}
    data = [{"id": "c", "create_time": 1, "mapping": {"a": node}, "current_node": "a"}]
    (conversation,) = parse_conversations(data)
    message = conversation.messages[0]
    assert message.role is Role.ASSISTANT
    assert message.metadata.extra == {"author_role": {"r": 1}}


def test_non_string_title_and_summary_become_text(claude_export, threaded_export) -> None:
    claude_export[0]["name"] = 2024
    claude_export[0]["summary"] = ["a", "b"]
    threaded_export[0]["title"] = {"text": "x"}
    (claude,) = parse_conversations(claude_export)
    (threaded,) = parse_conversations(threaded_export)
    assert claude.title == "2024"
    assert claude.summary == "['a', 'b']"
    assert threaded.title == "{'text': 'x'}"
