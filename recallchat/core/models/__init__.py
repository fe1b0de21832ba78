"""Domain models."""
from .chat import Message, MessageHistory
from .conversation import Conversation, DEFAULT_TITLE, derive_title
from .pending import PendingReply, PendingState
from .reply import ParsedReply, ReplyShape

__all__ = [
    "Message",
    "MessageHistory",
    "Conversation",
    "DEFAULT_TITLE",
    "derive_title",
    "PendingReply",
    "PendingState",
    "ParsedReply",
    "ReplyShape",
]
