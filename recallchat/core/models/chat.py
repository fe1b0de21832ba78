"""Chat domain models."""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant", "system")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_message_id(timestamp: datetime) -> str:
    """Time-derived id with a random suffix so same-millisecond turns stay unique."""
    return f"msg-{int(timestamp.timestamp() * 1000)}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Message:
    """Chat message."""
    role: str  # "user" | "assistant" | "system"
    content: Optional[str]
    id: str = ""
    timestamp: datetime = field(default_factory=utcnow)
    theme: Optional[str] = None
    thinking: Optional[str] = None

    @classmethod
    def create(
        cls,
        role: str,
        content: str,
        theme: Optional[str] = None,
        thinking: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "Message":
        """Create a message with a fresh id and timestamp."""
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        ts = timestamp or utcnow()
        return cls(
            role=role,
            content=content,
            id=new_message_id(ts),
            timestamp=ts,
            theme=theme,
            thinking=thinking,
        )

    @property
    def word_count(self) -> int:
        """Whitespace-separated words; missing content counts as zero."""
        if not isinstance(self.content, str):
            return 0
        return len(self.content.split())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "theme": self.theme,
        }
        if self.thinking:
            data["thinking"] = self.thinking
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build from persisted data, tolerating missing fields."""
        timestamp = utcnow()
        raw_ts = data.get("timestamp")
        if isinstance(raw_ts, str):
            try:
                timestamp = datetime.fromisoformat(raw_ts)
            except ValueError:
                logger.warning(f"Bad message timestamp {raw_ts!r}, using now")
        content = data.get("content")
        return cls(
            role=data.get("role", "user"),
            content=content if isinstance(content, str) else None,
            id=data.get("id") or new_message_id(timestamp),
            timestamp=timestamp,
            theme=data.get("theme"),
            thinking=data.get("thinking"),
        )


@dataclass
class MessageHistory:
    """Chat history with limit.

    Overflow keeps the first message, which anchors the conversation title
    and long-range context, plus the most recent ``max_messages - 1``.
    """
    messages: list[Message] = field(default_factory=list)
    max_messages: int = 50

    def __post_init__(self) -> None:
        if self.max_messages < 2:
            raise ValueError("max_messages must be at least 2")
        self._truncate()

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)

    def __getitem__(self, index):
        return self.messages[index]

    def append(self, message: Message) -> None:
        """Add message to history."""
        self.messages.append(message)
        self._truncate()

    def _truncate(self) -> None:
        if len(self.messages) <= self.max_messages:
            return
        dropped = len(self.messages) - self.max_messages
        self.messages = [self.messages[0]] + self.messages[-(self.max_messages - 1):]
        logger.info(
            f"History truncated to {self.max_messages} messages ({dropped} dropped)"
        )

    @property
    def last(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    def snapshot(self) -> list[Message]:
        """Copy of the messages, safe to store without aliasing."""
        return list(self.messages)

    def copy(self) -> "MessageHistory":
        return MessageHistory(messages=self.snapshot(), max_messages=self.max_messages)

    def user_messages(self) -> list[Message]:
        return [m for m in self.messages if m.role == "user"]

    def to_list(self) -> list[dict]:
        """Convert to list of dicts for LLM."""
        return [{"role": m.role, "content": m.content or ""} for m in self.messages]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.messages]

    @classmethod
    def from_dicts(
        cls, items: Iterable[dict[str, Any]], max_messages: int = 50
    ) -> "MessageHistory":
        messages = [Message.from_dict(item) for item in items if isinstance(item, dict)]
        return cls(messages=messages, max_messages=max_messages)
