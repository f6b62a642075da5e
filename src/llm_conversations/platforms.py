from __future__ import annotations

from llm_conversations.models import Conversation, Format

_URLS = {
    Format.OPENAI: "https://chatgpt.com/c/{id}",
    Format.CLAUDE: "https://claude.ai/chat/{id}",
}

_NAMES = {
    Format.OPENAI: "ChatGPT",
    Format.CLAUDE: "Claude",
    Format.THREADED: "Threaded export",
    Format.NORMALIZED: "Imported",
}


def platform_url(conversation: Conversation | None) -> str | None:
    """URL to continue the conversation on its original platform, if it has one."""
    if conversation is None or not conversation.id:
        return None
    template = _URLS.get(conversation.format)
    return template.format(id=conversation.id) if template else None


def platform_name(fmt: Format | str) -> str:
    try:
        return _NAMES[Format(fmt)]
    except ValueError:
        return "Unknown Platform"
