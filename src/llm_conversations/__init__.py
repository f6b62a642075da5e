from llm_conversations.adapters import parse_conversations
from llm_conversations.models import Conversation, Format, Message, Role

__version__ = "0.1.0"

__all__ = ["Conversation", "Format", "Message", "Role", "parse_conversations"]
