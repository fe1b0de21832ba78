"""Ephemeral placeholder shown while the remote call is outstanding."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .chat import Message

DEFAULT_PLACEHOLDER = "Thinking..."


class PendingState(Enum):
    """Lifecycle of a pending reply."""
    PENDING = "pending"
    COMMITTED = "committed"
    DISCARDED = "discarded"


@dataclass
class PendingReply:
    """Mutable "thinking" placeholder.

    Not a Message: it is never persisted and never counted toward the
    history cap. It ends either committed (the final Message is appended by
    the caller) or discarded (nothing is appended).
    """
    text: str = DEFAULT_PLACEHOLDER
    state: PendingState = PendingState.PENDING
    message: Optional[Message] = field(default=None)

    @property
    def is_pending(self) -> bool:
        return self.state is PendingState.PENDING

    def update(self, text: str) -> None:
        """Replace the placeholder text (e.g. with streamed thinking)."""
        if self.is_pending:
            self.text = text

    def commit(self, message: Message) -> Message:
        if not self.is_pending:
            raise RuntimeError(f"Cannot commit a {self.state.value} reply")
        self.state = PendingState.COMMITTED
        self.message = message
        return message

    def discard(self) -> None:
        """Drop the placeholder. Safe to call more than once."""
        if self.is_pending:
            self.state = PendingState.DISCARDED
