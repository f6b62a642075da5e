from __future__ import annotations

from typing import Any

from llm_conversations.codec import REIMPORT_KEYS
from llm_conversations.errors import EmptyInputError, UnrecognizedFormatError
from llm_conversations.models import Format


def _is_reimport(item: dict) -> bool:
    return all(key in item for key in REIMPORT_KEYS)


def _is_openai(item: dict) -> bool:
    return isinstance(item.get("mapping"), dict) and "current_node" in item


def _is_claude(item: dict) -> bool:
    return isinstance(item.get("chat_messages"), list) and "uuid" in item


def _is_threaded(item: dict) -> bool:
    inner = item.get("conversation")
    return (
        isinstance(inner, dict)
        and isinstance(inner.get("messages"), dict)
        and "current_message_id" in inner
    )


# Order matters: exported conversations may carry source keys such as
# "mapping", so the canonical signature is checked before any source format.
SIGNATURES: tuple[tuple[Format, Any], ...] = (
    (Format.NORMALIZED, _is_reimport),
    (Format.OPENAI, _is_openai),
    (Format.CLAUDE, _is_claude),
    (Format.THREADED, _is_threaded),
)


def as_batch(data: Any) -> list:
    """Return the homogeneous list of conversation objects held by ``data``."""
    if isinstance(data, dict) and _is_reimport(data):
        return [data]
    if not isinstance(data, list):
        raise EmptyInputError("Invalid conversation format: expected non-empty array")
    if not data:
        raise EmptyInputError("Invalid conversation format: expected non-empty array")
    return data


def detect_format(data: Any) -> Format:
    """Classify a parsed export by the signature of its first element.

    ``Format.NORMALIZED`` means the payload is a re-import of our own export;
    the conversations inside keep whatever format tag they were exported with.
    """
    first = as_batch(data)[0]
    if not isinstance(first, dict):
        raise UnrecognizedFormatError("Unknown conversation format: first element is not an object")
    for fmt, matches in SIGNATURES:
        if matches(first):
            return fmt
    raise UnrecognizedFormatError("Unknown conversation format")
