"""Theme classifier - coarse topic labels from weighted keyword matching."""

import logging
from typing import Sequence

from ..models.chat import Message
from ..strategies.themes import (
    GENERAL_CONVERSATION,
    GENERAL_INTEREST,
    NOT_DETERMINED,
    ThemeRegistry,
)

logger = logging.getLogger(__name__)


class ThemeClassifier:
    """Single-label theme detection plus independent interest labels."""

    def __init__(
        self,
        registry: ThemeRegistry | None = None,
        window: int = 8,
        recency_bonus: int = 2,
    ):
        """Initialize classifier.

        Args:
            registry: Theme and interest rules; defaults to the built-in set.
            window: How many trailing messages are considered for the theme.
            recency_bonus: Weight added when the latest user message matches.
        """
        self._registry = registry or ThemeRegistry()
        self._window = window
        self._recency_bonus = recency_bonus

    @property
    def registry(self) -> ThemeRegistry:
        return self._registry

    def weights(self, context: Sequence[Message]) -> dict[str, int]:
        """Weight per theme label, in registry order."""
        recent = [m for m in context[-self._window:] if m.role == "user"]
        text = " ".join(m.content for m in recent if isinstance(m.content, str))

        last = context[-1] if context else None
        last_text = (
            last.content
            if last is not None and last.role == "user" and isinstance(last.content, str)
            else None
        )

        weights: dict[str, int] = {}
        for rule in self._registry.themes:
            weight = rule.count(text) * rule.weight
            if last_text is not None and rule.matches(last_text):
                weight += self._recency_bonus
            weights[rule.label] = weight
        return weights

    def classify(self, context: Sequence[Message]) -> str:
        """Dominant theme of the recent user messages.

        Returns NOT_DETERMINED when the context holds no user message and
        GENERAL_CONVERSATION when no rule matched at all.
        """
        if not any(m.role == "user" for m in context):
            return NOT_DETERMINED

        best_label = None
        best_weight = 0
        for label, weight in self.weights(context).items():
            if weight > best_weight:
                best_label, best_weight = label, weight

        return best_label if best_label is not None else GENERAL_CONVERSATION

    def interests(self, context: Sequence[Message]) -> tuple[str, ...]:
        """Interest labels matched anywhere in the user messages."""
        user_texts = [
            m.content for m in context if m.role == "user" and isinstance(m.content, str)
        ]
        if not context:
            return (NOT_DETERMINED,)

        text = " ".join(user_texts)
        matched = tuple(r.label for r in self._registry.interests if r.matches(text))
        return matched or (GENERAL_INTEREST,)
