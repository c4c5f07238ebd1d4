"""Chat session and client for chatline."""

from .client import ChatClient, ChatError, ChatTimeoutError
from .models import ChatMessage, Sender, dump_log, load_log, new_message_id
from .session import ChatSession, history_key_for

__all__ = [
    "ChatClient",
    "ChatError",
    "ChatMessage",
    "ChatSession",
    "ChatTimeoutError",
    "Sender",
    "dump_log",
    "history_key_for",
    "load_log",
    "new_message_id",
]
