"""Core business services."""
from .chat_service import ChatService, TurnResult
from .context_service import ContextBuilder
from .conversation_store import ConversationStore
from .reply_parser import ReplyParser
from .scrubber import ScrubResult, TextScrubber
from .session import ChatSession, run_periodic_flush
from .theme_service import ThemeClassifier

__all__ = [
    "ChatService",
    "TurnResult",
    "ContextBuilder",
    "ConversationStore",
    "ReplyParser",
    "ScrubResult",
    "TextScrubber",
    "ChatSession",
    "run_periodic_flush",
    "ThemeClassifier",
]
