from __future__ import annotations

from typing import Any, Callable

from llm_conversations.detect import as_batch, detect_format
from llm_conversations.models import Conversation, Format

from . import claude, openai, reimport, threaded

Normalizer = Callable[[list], list[Conversation]]


def get_normalizer(fmt: Format | str) -> Normalizer:
    normalized = Format(fmt.strip().lower()) if isinstance(fmt, str) else fmt
    if normalized is Format.OPENAI:
        return openai.normalize
    if normalized is Format.CLAUDE:
        return claude.normalize
    if normalized is Format.THREADED:
        return threaded.normalize
    if normalized is Format.NORMALIZED:
        return reimport.normalize
    raise ValueError(f"Unsupported format: {fmt}")


def parse_conversations(data: Any) -> list[Conversation]:
    """Detect the export format of ``data`` and normalize every conversation in it."""
    fmt = detect_format(data)
    return get_normalizer(fmt)(as_batch(data))
