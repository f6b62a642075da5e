from __future__ import annotations

from llm_conversations.models import Conversation, Role
from llm_conversations.platforms import platform_name, platform_url
from llm_conversations.utils import format_instant

_HEADINGS = {Role.USER: "User", Role.ASSISTANT: "Assistant", Role.SYSTEM: "System"}


def render_markdown(conversation: Conversation, *, with_system: bool = False) -> str:
    lines: list[str] = []
    lines.append(f"# {conversation.title}")
    lines.append("")
    lines.append(f"- Source: `{platform_name(conversation.format)}`")
    lines.append(f"- Created: `{format_instant(conversation.created)}`")
    lines.append(f"- Updated: `{format_instant(conversation.updated)}`")
    url = platform_url(conversation)
    if url:
        lines.append(f"- Continue: <{url}>")
    if conversation.summary:
        lines.append("")
        lines.append(f"> {conversation.summary}")
    lines.append("")

    visible = [
        m for m in conversation.messages if with_system or m.role is not Role.SYSTEM
    ]
    if not visible:
        lines.append("_No messages in this conversation._")
        lines.append("")

    for message in visible:
        model = getattr(message.metadata, "model", None)
        suffix = f" · {model}" if model else ""
        lines.append(f"## {_HEADINGS[message.role]}")
        lines.append("")
        lines.append(f"_`{format_instant(message.timestamp)}`{suffix}_")
        lines.append("")
        lines.append(message.content)
        lines.append("")

    return "\n".join(lines)
