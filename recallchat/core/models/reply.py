"""Upstream reply models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReplyShape(Enum):
    """Which detector recognised the upstream body."""
    ERROR = "error"
    THINKING = "thinking"
    RESPONSE = "response"
    CHAT_COMPLETION = "chat_completion"
    MESSAGE = "message"
    ALTERNATE = "alternate"
    UNKNOWN_JSON = "unknown_json"
    PLAIN_TEXT = "plain_text"


@dataclass(frozen=True)
class ParsedReply:
    """Upstream reply resolved to final text plus optional thinking."""
    shape: ReplyShape
    text: str
    thinking: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.shape is ReplyShape.ERROR
