from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Union

UNTITLED = "Untitled Conversation"


class Format(str, Enum):
    OPENAI = "openai"
    CLAUDE = "claude"
    THREADED = "threaded"
    NORMALIZED = "normalized"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _compact(known: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in known.items() if value is not None}
    for key, value in extra.items():
        data.setdefault(key, value)
    return data


def _split(data: Mapping[str, Any], known: tuple[str, ...]) -> tuple[dict[str, Any], dict[str, Any]]:
    picked = {key: data.get(key) for key in known}
    extra = {key: value for key, value in data.items() if key not in known}
    return picked, extra


@dataclass(frozen=True)
class OpenAIMeta:
    model: str | None = None
    status: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return _compact({"model": self.model, "status": self.status}, self.extra)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OpenAIMeta":
        picked, extra = _split(data, ("model", "status"))
        return cls(**picked, extra=extra)


@dataclass(frozen=True)
class ClaudeMeta:
    attachments: list[Any] | None = None
    files: list[Any] | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return _compact({"attachments": self.attachments, "files": self.files}, self.extra)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClaudeMeta":
        picked, extra = _split(data, ("attachments", "files"))
        return cls(**picked, extra=extra)


@dataclass(frozen=True)
class ThreadedMeta:
    model: str | None = None
    # token counts as reported by the export, e.g. {"input_tokens": 12, "output_tokens": 40}
    usage: Mapping[str, Any] | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        usage = dict(self.usage) if self.usage is not None else None
        return _compact({"model": self.model, "usage": usage}, self.extra)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ThreadedMeta":
        picked, extra = _split(data, ("model", "usage"))
        return cls(**picked, extra=extra)


@dataclass(frozen=True)
class GenericMeta:
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.extra)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GenericMeta":
        return cls(extra=dict(data))


MessageMeta = Union[OpenAIMeta, ClaudeMeta, ThreadedMeta, GenericMeta]

META_TYPES: dict[Format, type] = {
    Format.OPENAI: OpenAIMeta,
    Format.CLAUDE: ClaudeMeta,
    Format.THREADED: ThreadedMeta,
    Format.NORMALIZED: GenericMeta,
}


def metadata_from_dict(fmt: Format, data: Mapping[str, Any] | None) -> MessageMeta:
    return META_TYPES[fmt].from_dict(data or {})


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    timestamp: datetime
    metadata: MessageMeta = field(default_factory=GenericMeta)


@dataclass(frozen=True)
class Conversation:
    id: str
    title: str
    created: datetime
    updated: datetime
    format: Format
    messages: tuple[Message, ...] = ()
    summary: str | None = None
