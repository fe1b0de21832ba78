import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models.chat import Message

logger = logging.getLogger(__name__)

CODE_FENCE = "```"


@dataclass
class ScoredMessage:
    """Message with its position and transient selection score. Never persisted."""
    message: Message
    index: int
    score: float = 0.0


class ScoringStrategy(ABC):
    """Base class for message scoring strategies."""

    @abstractmethod
    def score(self, message: Message, index: int, total: int, theme: str) -> float:
        """Return this strategy's contribution to the message score."""
        ...


class RecencyStrategy(ScoringStrategy):
    """Later messages score higher, continuously."""

    def __init__(self, scale: float = 10.0):
        """Initialize strategy.

        Args:
            scale: Score of a message at the very end of the sequence.
        """
        self._scale = scale

    def score(self, message: Message, index: int, total: int, theme: str) -> float:
        if total <= 0:
            return 0.0
        return (index / total) * self._scale


class ThemeMatchStrategy(ScoringStrategy):
    """Bonus when the message theme equals the dominant theme."""

    def __init__(self, bonus: float = 5.0):
        self._bonus = bonus

    def score(self, message: Message, index: int, total: int, theme: str) -> float:
        return self._bonus if message.theme is not None and message.theme == theme else 0.0


class LengthSweetSpotStrategy(ScoringStrategy):
    """Bonus for messages that are neither terse nor verbose."""

    def __init__(self, min_words: int = 10, max_words: int = 100, bonus: float = 3.0):
        """Initialize strategy.

        Args:
            min_words: Lower bound, inclusive.
            max_words: Upper bound, inclusive.
            bonus: Score added inside the range.
        """
        self._min_words = min_words
        self._max_words = max_words
        self._bonus = bonus

    def score(self, message: Message, index: int, total: int, theme: str) -> float:
        words = message.word_count
        return self._bonus if self._min_words <= words <= self._max_words else 0.0


class CodeBlockStrategy(ScoringStrategy):
    """Bonus for messages carrying a fenced code block."""

    def __init__(self, bonus: float = 4.0):
        self._bonus = bonus

    def score(self, message: Message, index: int, total: int, theme: str) -> float:
        content = message.content
        if isinstance(content, str) and CODE_FENCE in content:
            return self._bonus
        return 0.0


DEFAULT_STRATEGIES: tuple[ScoringStrategy, ...] = (
    RecencyStrategy(),
    ThemeMatchStrategy(),
    LengthSweetSpotStrategy(),
    CodeBlockStrategy(),
)


def score_messages(
    messages: list[Message],
    theme: str,
    strategies: tuple[ScoringStrategy, ...] = DEFAULT_STRATEGIES,
) -> list[ScoredMessage]:
    """Score every message independently as the plain sum of strategy terms."""
    total = len(messages)
    scored = []
    for index, message in enumerate(messages):
        score = 0.0
        for strategy in strategies:
            try:
                score += strategy.score(message, index, total, theme)
            except (AttributeError, TypeError) as e:
                logger.warning(
                    f"Scoring: {type(strategy).__name__} skipped message {index}: {e}"
                )
        scored.append(ScoredMessage(message=message, index=index, score=score))
    return scored
