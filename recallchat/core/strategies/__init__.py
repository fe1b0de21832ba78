"""Scoring strategies and classification registries."""
from .scoring import (
    CodeBlockStrategy,
    LengthSweetSpotStrategy,
    RecencyStrategy,
    ScoredMessage,
    ScoringStrategy,
    ThemeMatchStrategy,
    score_messages,
)
from .themes import ThemeRegistry, ThemeRule, load_registry

__all__ = [
    "CodeBlockStrategy",
    "LengthSweetSpotStrategy",
    "RecencyStrategy",
    "ScoredMessage",
    "ScoringStrategy",
    "ThemeMatchStrategy",
    "score_messages",
    "ThemeRegistry",
    "ThemeRule",
    "load_registry",
]
