"""Context builder - picks which history is resent to the model each turn."""

import logging
from typing import Sequence

from ..models.chat import Message
from ..strategies.scoring import DEFAULT_STRATEGIES, ScoringStrategy, score_messages
from .scrubber import THINK_OPEN, TextScrubber
from .theme_service import ThemeClassifier

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 50
EXCERPT_SOURCE_COUNT = 3

SYSTEM_PROMPT = """You are {ai_name}, a helpful AI assistant. Give polite, informative and context-aware answers. In every answer:

1. Remember the previous messages and actively use that context
2. Follow the flow of the conversation and connect to earlier topics
3. Refer explicitly to the user's earlier questions when relevant
4. Keep answers consistent, connected and thorough
5. Stay on the main theme of the conversation
6. Take the user's interests into account and expand on them

Current conversation context:
- Main theme: {theme}
- Messages in context: {count}
- Recent topics: {topics}
- Interests: {interests}"""


def _word_count(message: Message) -> int:
    content = getattr(message, "content", None)
    return len(content.split()) if isinstance(content, str) else 0


class ContextBuilder:
    """Builds the bounded, chronologically ordered context for one turn.

    Two independent caps apply: a message count and a total word budget.
    ``build`` applies them in this order:

    1. keep the last ``max_messages`` entries, drop any that still carry a
       ``<think>`` span, scrub the rest and drop what ends up empty;
    2. reserve one slot and the word count of the synthesized system entry;
    3. score, rank and greedily pack within the remaining word budget;
    4. restore chronological order and prepend the system entry unless the
       packed context already starts with one.
    """

    def __init__(
        self,
        classifier: ThemeClassifier,
        scrubber: TextScrubber,
        max_messages: int = 15,
        max_words: int = 1000,
        ai_name: str = "CepyX",
        strategies: tuple[ScoringStrategy, ...] = DEFAULT_STRATEGIES,
    ):
        """Initialize context builder.

        Args:
            classifier: Theme classifier used for the dominant theme.
            scrubber: Scrubber applied to candidate content.
            max_messages: Cap on context entries, system entry included.
            max_words: Cap on total context words, system entry included.
            ai_name: Assistant name used in the system entry.
            strategies: Scoring strategies summed per message.
        """
        self._classifier = classifier
        self._scrubber = scrubber
        self._max_messages = max_messages
        self._max_words = max_words
        self._ai_name = ai_name
        self._strategies = strategies

    def recent(self, messages: Sequence[Message]) -> list[Message]:
        """Count-capped tail with thinking-bearing and empty entries removed."""
        if self._max_messages <= 0:
            return []
        candidates: list[Message] = []
        for message in list(messages)[-self._max_messages:]:
            content = getattr(message, "content", None)
            if not isinstance(content, str) or THINK_OPEN in content:
                continue
            cleaned = self._scrubber.clean(content).strip()
            if not cleaned:
                continue
            if cleaned != content:
                message = Message(
                    role=message.role,
                    content=cleaned,
                    id=message.id,
                    timestamp=message.timestamp,
                    theme=message.theme,
                    thinking=message.thinking,
                )
            candidates.append(message)
        return candidates

    def select(
        self,
        messages: Sequence[Message],
        max_words: int | None = None,
        max_messages: int | None = None,
    ) -> list[dict]:
        """Rank by importance, pack within the word budget, return in chronological order.

        Args:
            messages: Candidate messages in chronological order.
            max_words: Word budget; defaults to the configured one.
            max_messages: Optional cap on admitted entries.

        Returns:
            ``{role, content}`` dicts in original order.
        """
        messages = list(messages)
        if not messages:
            return []

        budget = self._max_words if max_words is None else max_words
        theme = self._classifier.classify(messages)
        scored = score_messages(messages, theme, self._strategies)
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)

        admitted = []
        word_count = 0
        for item in ranked:
            if max_messages is not None and len(admitted) >= max_messages:
                break
            words = _word_count(item.message)
            if word_count + words <= budget:
                admitted.append(item)
                word_count += words

        admitted.sort(key=lambda s: s.index)

        if len(admitted) < len(messages):
            logger.info(
                f"Context: {len(messages)} → {len(admitted)} messages "
                f"({word_count}/{budget} words, theme={theme})"
            )

        return [
            {"role": item.message.role, "content": item.message.content or ""}
            for item in admitted
        ]

    def system_message(self, candidates: Sequence[Message], count: int) -> dict:
        """Synthesized system entry grounding the model in conversation metadata."""
        theme = self._classifier.classify(candidates)
        interests = self._classifier.interests(candidates)

        topics = [
            f"{(m.content or '')[:EXCERPT_LENGTH]}..."
            for m in list(candidates)[-EXCERPT_SOURCE_COUNT:]
            if m.role == "user"
        ]

        content = SYSTEM_PROMPT.format(
            ai_name=self._ai_name,
            theme=theme,
            count=count,
            topics="\n- ".join(topics) if topics else "-",
            interests=", ".join(interests),
        )
        return {"role": "system", "content": content}

    def build(self, messages: Sequence[Message]) -> list[dict]:
        """Context for the upstream request."""
        candidates = self.recent(messages)

        draft = self.system_message(candidates, count=0)
        reserved_words = len(draft["content"].split())
        budget = max(self._max_words - reserved_words, 0)
        slots = max(self._max_messages - 1, 0)

        context = self.select(candidates, max_words=budget, max_messages=slots)

        if not context or context[0]["role"] != "system":
            context.insert(0, self.system_message(candidates, count=len(context)))

        return context
