"""Conversation store - bounded, persisted collection of conversations."""

import json
import logging
from datetime import datetime
from typing import Callable, Optional

from ..models.chat import MessageHistory, utcnow
from ..models.conversation import DEFAULT_TITLE, Conversation, derive_title
from ..protocols.storage import KeyValueStorageProtocol

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "conversations"
ACTIVE_CONVERSATION_KEY = "active_conversation"


class ConversationStore:
    """Conversations keyed by id, with LRU eviction and an active pointer.

    Stored messages are value copies of the live history. Every write to
    storage is a full overwrite of the serialized map. Unknown ids are
    no-ops rather than errors, since a caller may race with cleanup.
    """

    def __init__(
        self,
        storage: KeyValueStorageProtocol,
        max_conversations: int = 20,
        max_history_length: int = 50,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize store and load persisted state.

        Args:
            storage: Key/value collaborator.
            max_conversations: Cap on stored conversations.
            max_history_length: Cap applied to histories handed back by ``load``.
            clock: Source of timestamps.
        """
        if max_conversations < 1:
            raise ValueError("max_conversations must be at least 1")
        self._storage = storage
        self._max_conversations = max_conversations
        self._max_history_length = max_history_length
        self._clock = clock
        self._conversations: dict[str, Conversation] = self._load_conversations()
        self._active_id: Optional[str] = self._load_active_id()

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def list(self) -> list[Conversation]:
        """Conversations, most recently updated first."""
        return sorted(self._conversations.values(), key=lambda c: c.updated_at, reverse=True)

    def create(self, initial_history: MessageHistory, title: Optional[str] = None) -> str:
        """Create a conversation from a history snapshot and make it active.

        Args:
            initial_history: Messages to snapshot.
            title: Explicit title; derived from the first user message otherwise.

        Returns:
            New conversation id.
        """
        messages = initial_history.snapshot()
        now = self._clock()
        conversation = Conversation(
            id=self._new_id(now),
            title=title or derive_title(messages) or DEFAULT_TITLE,
            messages=messages,
            created_at=now,
            updated_at=now,
        )

        self._evict(keep=self._max_conversations - 1)
        self._conversations[conversation.id] = conversation
        self._active_id = conversation.id
        self._persist()
        self._persist_active()

        logger.info(f"Conversation created: {conversation.id} '{conversation.title}'")
        return conversation.id

    def load(
        self, conversation_id: str, live_history: Optional[MessageHistory] = None
    ) -> Optional[MessageHistory]:
        """Switch the active conversation and return a copy of its history.

        The live history of the currently active conversation is flushed
        first so nothing typed before the switch is lost.

        Returns:
            The loaded history, or None if the id is unknown.
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            logger.info(f"Load ignored, unknown conversation {conversation_id}")
            return None

        if self._active_id and live_history is not None and len(live_history) > 0:
            self.flush(self._active_id, live_history)

        self._active_id = conversation_id
        self._persist_active()
        return conversation.history(self._max_history_length)

    def sync(self, conversation_id: str, history: MessageHistory) -> None:
        """Overwrite the stored snapshot after a change to the live history."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            logger.info(f"Sync ignored, unknown conversation {conversation_id}")
            return

        conversation.messages = history.snapshot()
        conversation.updated_at = max(self._clock(), conversation.created_at)
        title = derive_title(conversation.messages)
        if title is not None:
            conversation.title = title
        self._persist()

    def flush(self, conversation_id: str, history: MessageHistory) -> bool:
        """Idempotent snapshot overwrite.

        ``updated_at`` only moves when the snapshot actually differs, so
        repeated flushes never reorder the list.

        Returns:
            True if the stored snapshot changed.
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return False

        snapshot = history.snapshot()
        changed = snapshot != conversation.messages
        if changed:
            conversation.messages = snapshot
            conversation.updated_at = max(self._clock(), conversation.created_at)
        self._persist()
        return changed

    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation; clears the active pointer if it was active.

        Returns:
            True if something was deleted.
        """
        if conversation_id not in self._conversations:
            return False

        del self._conversations[conversation_id]
        self._persist()

        if conversation_id == self._active_id:
            self._active_id = None
            self._persist_active()

        logger.info(f"Conversation deleted: {conversation_id}")
        return True

    def persist(self) -> None:
        """Write the whole state again."""
        self._persist()
        self._persist_active()

    def _new_id(self, now: datetime) -> str:
        stamp = int(now.timestamp() * 1000)
        conversation_id = f"conv-{stamp}"
        while conversation_id in self._conversations:
            stamp += 1
            conversation_id = f"conv-{stamp}"
        return conversation_id

    def _evict(self, keep: int) -> None:
        excess = len(self._conversations) - keep
        if excess <= 0:
            return

        oldest = sorted(self._conversations.values(), key=lambda c: c.updated_at)[:excess]
        for conversation in oldest:
            del self._conversations[conversation.id]
            if conversation.id == self._active_id:
                self._active_id = None

        logger.info(
            f"Evicted {len(oldest)} old conversation(s): "
            f"{', '.join(c.id for c in oldest)}"
        )

    def _persist(self) -> None:
        data = {cid: c.to_dict() for cid, c in self._conversations.items()}
        self._storage.set(CONVERSATIONS_KEY, json.dumps(data, ensure_ascii=False))

    def _persist_active(self) -> None:
        if self._active_id:
            self._storage.set(ACTIVE_CONVERSATION_KEY, self._active_id)
        else:
            self._storage.delete(ACTIVE_CONVERSATION_KEY)

    def _load_conversations(self) -> dict[str, Conversation]:
        raw = self._storage.get(CONVERSATIONS_KEY)
        if not raw:
            return {}

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            conversations = {}
            for cid, item in data.items():
                conversation = Conversation.from_dict(item)
                conversations[conversation.id or cid] = conversation
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Stored conversations are unreadable ({e}), starting empty")
            return {}

        if len(conversations) > self._max_conversations:
            ordered = sorted(conversations.values(), key=lambda c: c.updated_at, reverse=True)
            conversations = {c.id: c for c in ordered[: self._max_conversations]}

        logger.info(f"Loaded {len(conversations)} conversation(s)")
        return conversations

    def _load_active_id(self) -> Optional[str]:
        active_id = self._storage.get(ACTIVE_CONVERSATION_KEY)
        if active_id and active_id in self._conversations:
            return active_id
        return None
