"""Chat session - live history, conversation store and UI preference."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models.chat import Message, MessageHistory
from ..protocols.storage import KeyValueStorageProtocol
from .conversation_store import ConversationStore

logger = logging.getLogger(__name__)

UI_THEME_KEY = "ui_theme"
UI_THEMES = ("dark", "light")
DEFAULT_UI_THEME = "dark"


@dataclass
class ChatSession:
    """Explicit session state passed to every operation."""
    storage: KeyValueStorageProtocol
    store: ConversationStore
    history: MessageHistory = field(default_factory=MessageHistory)
    ui_theme: str = DEFAULT_UI_THEME

    @classmethod
    def restore(
        cls,
        storage: KeyValueStorageProtocol,
        max_conversations: int = 20,
        max_history_length: int = 50,
    ) -> "ChatSession":
        """Rebuild a session from persisted state.

        Unreadable state degrades to an empty session.
        """
        store = ConversationStore(
            storage,
            max_conversations=max_conversations,
            max_history_length=max_history_length,
        )

        history = MessageHistory(max_messages=max_history_length)
        if store.active_id:
            conversation = store.get(store.active_id)
            history = conversation.history(max_history_length)
            logger.info(
                f"Restored conversation {conversation.id} ({len(history)} messages)"
            )

        ui_theme = storage.get(UI_THEME_KEY) or DEFAULT_UI_THEME
        if ui_theme not in UI_THEMES:
            logger.warning(f"Unknown UI theme {ui_theme!r}, using {DEFAULT_UI_THEME}")
            ui_theme = DEFAULT_UI_THEME

        return cls(storage=storage, store=store, history=history, ui_theme=ui_theme)

    @property
    def active_id(self) -> Optional[str]:
        return self.store.active_id

    def record(self, message: Message) -> None:
        """Append to the live history and persist the active conversation.

        The first message of a fresh session creates the conversation.
        """
        self.history.append(message)
        if self.store.active_id:
            self.store.sync(self.store.active_id, self.history)
        else:
            self.store.create(self.history)

    def new_conversation(self, title: Optional[str] = None) -> str:
        """Flush the current conversation and start an empty one."""
        self.flush()
        self.history = MessageHistory(max_messages=self.history.max_messages)
        return self.store.create(self.history, title=title)

    def open(self, conversation_id: str) -> bool:
        """Switch to another conversation. Unknown ids leave the session as is."""
        history = self.store.load(conversation_id, live_history=self.history)
        if history is None:
            return False
        self.history = history
        return True

    def delete(self, conversation_id: str) -> bool:
        """Delete a conversation; deleting the active one clears the live history."""
        was_active = conversation_id == self.store.active_id
        deleted = self.store.delete(conversation_id)
        if deleted and was_active:
            self.history = MessageHistory(max_messages=self.history.max_messages)
        return deleted

    def set_ui_theme(self, ui_theme: str) -> None:
        if ui_theme not in UI_THEMES:
            raise ValueError(f"UI theme must be one of {', '.join(UI_THEMES)}")
        self.ui_theme = ui_theme
        self.storage.set(UI_THEME_KEY, ui_theme)

    def flush(self) -> None:
        """Snapshot everything to storage. Repeated calls change nothing."""
        if self.store.active_id and len(self.history) > 0:
            self.store.flush(self.store.active_id, self.history)
        self.store.persist()
        self.storage.set(UI_THEME_KEY, self.ui_theme)
        logger.debug("Session flushed")


async def run_periodic_flush(session: ChatSession, interval: float = 30.0) -> None:
    """Flush the session every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            session.flush()
        except OSError as e:
            logger.error(f"Periodic flush failed: {e}")
