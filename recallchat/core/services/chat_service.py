"""Chat service - runs one turn from user input to committed reply."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import UpstreamError, UpstreamReplyError
from ..models.chat import Message
from ..models.pending import PendingReply
from ..protocols.llm import LLMProtocol
from .context_service import ContextBuilder
from .reply_parser import ReplyParser
from .scrubber import THINK_CLOSE, THINK_OPEN, TextScrubber
from .session import ChatSession
from .theme_service import ThemeClassifier

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Sorry, an error occurred: {reason}"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one turn."""
    message: Message
    thinking: Optional[str] = None
    failed: bool = False


class ChatService:
    """Chat service that coordinates context selection, the LLM and scrubbing."""

    def __init__(
        self,
        llm: LLMProtocol,
        context_builder: ContextBuilder,
        classifier: ThemeClassifier,
        scrubber: TextScrubber,
        parser: ReplyParser | None = None,
    ):
        """Initialize chat service.

        Args:
            llm: Remote model client.
            context_builder: Builds the context resent each turn.
            classifier: Labels new messages with the conversation theme.
            scrubber: Cleans raw replies before they are stored.
            parser: Resolves reply shapes.
        """
        self._llm = llm
        self._context_builder = context_builder
        self._classifier = classifier
        self._scrubber = scrubber
        self._parser = parser or ReplyParser()
        self.pending: Optional[PendingReply] = None

    def _theme_for(self, session: ChatSession, role: str, content: str) -> str:
        probe = Message(role=role, content=content)
        return self._classifier.classify(session.history.snapshot() + [probe])

    async def send_message(self, session: ChatSession, text: str) -> Optional[TurnResult]:
        """Process one user message.

        Flow:
            1. Append the user message and persist
            2. Build context from the history
            3. Remote call, with a pending placeholder while it runs
            4. Parse and scrub the reply, append it and persist

        A turn either commits the assistant message or commits nothing. A
        failed remote call is recorded as a single assistant error message.

        Args:
            session: Session holding the live history and store.
            text: Raw user input.

        Returns:
            Turn result, or None for blank input.
        """
        text = text.strip()
        if not text:
            return None

        user_message = Message.create(
            "user", text, theme=self._theme_for(session, "user", text)
        )
        session.record(user_message)

        context = self._context_builder.build(session.history.snapshot())
        logger.info(
            f"Sending turn: {len(context)} context entries for '{text[:50]}...'"
        )

        pending = PendingReply()
        self.pending = pending
        try:
            raw = await self._llm.complete(prompt=text, context=context)
            reply = self._parser.parse(raw)
            if reply.is_error:
                raise UpstreamReplyError(reply.text)
            pending.update(reply.thinking or pending.text)

            scrubbed = self._scrubber.scrub(reply.text)
            if not scrubbed.content.strip():
                raise UpstreamReplyError("Empty response from the model")
            if THINK_OPEN in scrubbed.content or THINK_CLOSE in scrubbed.content:
                raise UpstreamReplyError("The model returned only its reasoning")
        except asyncio.CancelledError:
            pending.discard()
            logger.info("Turn cancelled, nothing committed")
            raise
        except UpstreamError as e:
            pending.discard()
            logger.error(f"Upstream call failed: {e}")
            error_message = Message.create(
                "assistant", ERROR_MESSAGE.format(reason=e.message)
            )
            session.record(error_message)
            return TurnResult(message=error_message, failed=True)
        finally:
            self.pending = None

        thinking = "\n\n".join(
            part for part in (reply.thinking, scrubbed.thinking) if part
        ) or None
        message = pending.commit(
            Message.create(
                "assistant",
                scrubbed.content,
                theme=self._theme_for(session, "assistant", scrubbed.content),
                thinking=thinking,
            )
        )
        session.record(message)
        return TurnResult(message=message, thinking=thinking)
