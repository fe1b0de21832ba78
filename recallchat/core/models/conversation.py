"""Conversation domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .chat import Message, MessageHistory, utcnow

DEFAULT_TITLE = "New Conversation"
TITLE_MAX_LENGTH = 30


def derive_title(messages: list[Message]) -> Optional[str]:
    """Title from the first message if it was sent by the user, else None."""
    if not messages or messages[0].role != "user":
        return None
    content = messages[0].content or ""
    title = content[:TITLE_MAX_LENGTH]
    if len(content) > TITLE_MAX_LENGTH:
        title += "..."
    return title


@dataclass
class Conversation:
    """Named, persisted snapshot of a message history."""
    id: str
    title: str = DEFAULT_TITLE
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def history(self, max_messages: int = 50) -> MessageHistory:
        """Live history built from a copy of the snapshot."""
        return MessageHistory(messages=list(self.messages), max_messages=max_messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        created_at = datetime.fromisoformat(data["createdAt"])
        updated_at = datetime.fromisoformat(data.get("updatedAt") or data["createdAt"])
        return cls(
            id=data["id"],
            title=data.get("title") or DEFAULT_TITLE,
            messages=[
                Message.from_dict(m) for m in data.get("messages", []) if isinstance(m, dict)
            ],
            created_at=created_at,
            updated_at=max(updated_at, created_at),
        )
