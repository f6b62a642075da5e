from __future__ import annotations

from llm_conversations.codec import conversation_from_record
from llm_conversations.models import Conversation


def normalize(data: list) -> list[Conversation]:
    return [conversation_from_record(record) for record in data]
