"""Declarative theme and interest registries.

Registry order is observable: the classifier breaks weight ties in favour of
the earlier entry, and interest labels are reported in registry order.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

NOT_DETERMINED = "not determined yet"
GENERAL_CONVERSATION = "general conversation"
GENERAL_INTEREST = "general"


@dataclass(frozen=True)
class ThemeRule:
    """Label matched by a case-insensitive pattern; each match adds ``weight``."""
    label: str
    pattern: re.Pattern
    weight: int = 1

    @classmethod
    def compile(cls, label: str, pattern: str, weight: int = 1) -> "ThemeRule":
        return cls(label=label, pattern=re.compile(pattern, re.IGNORECASE), weight=weight)

    def count(self, text: str) -> int:
        return sum(1 for _ in self.pattern.finditer(text))

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


DEFAULT_THEMES: tuple[ThemeRule, ...] = (
    ThemeRule.compile(
        "programming",
        r"\b(?:kod|code\b|program|javascript|python|html|css|api\b|fonksiyon|function"
        r"|değişken|variable|class\b|interface|framework|library|kütüphane|debug"
        r"|hata|bug\b|test|git\b|database|veritaban|sql\b|react|vue\b|angular)",
    ),
    ThemeRule.compile(
        "technology",
        r"\b(?:bilgisayar|computer|yazılım|software|donanım|hardware|internet|web\b"
        r"|uygulama|application|sistem|system|network|cloud|bulut|güvenlik|security"
        r"|yapay zeka|ai\b|blockchain|iot\b|mobil|android|ios\b)",
    ),
    ThemeRule.compile(
        "education",
        r"\b(?:öğren|learn|ders\b|dersi|lesson|eğitim|education|okul|school|ödev"
        r"|homework|sınav|exam|kurs|course|öğretmen|teacher|öğrenci|student|akademik"
        r"|academic|araştırma|research|sunum|presentation|rapor|report|analiz|analysis)",
    ),
    ThemeRule.compile(
        "career",
        r"\b(?:iş\b|işe\b|job|kariyer|career|mülakat|interview|cv\b|özgeçmiş|resume"
        r"|şirket|company|pozisyon|position|deneyim|experience|remote|uzaktan|ofis"
        r"|office|takım|team|proje|project|yönetim|management|liderlik|leadership)",
    ),
    ThemeRule.compile(
        "general",
        r"\b(?:yardım|help|nasıl|how\b|nedir|what is|neden|why\b|ne zaman|kimdir"
        r"|who is|öneri|suggest|tavsiye|advice|fikir|idea|düşünce|problem|sorun"
        r"|çözüm|solution)",
    ),
)

DEFAULT_INTERESTS: tuple[ThemeRule, ...] = (
    ThemeRule.compile(
        "software development",
        r"\b(?:kod|code\b|coding|program|yazılım|software|geliştir|develop)",
    ),
    ThemeRule.compile(
        "web development",
        r"\b(?:web\b|website|site\b|html|css|javascript|frontend|backend)",
    ),
    ThemeRule.compile(
        "artificial intelligence",
        r"\b(?:yapay zeka|ai\b|machine learning|makine öğrenme|ml\b|llm\b"
        r"|deep learning|derin öğrenme)",
    ),
    ThemeRule.compile(
        "data analysis",
        r"\b(?:veri|data\b|analiz|analysis|analytics|istatistik|statistic)",
    ),
    ThemeRule.compile(
        "mobile development",
        r"\b(?:mobil|uygulama|app\b|apps\b|android|ios\b|iphone)",
    ),
)


@dataclass(frozen=True)
class ThemeRegistry:
    """Theme rules (single label) and interest rules (multi label)."""
    themes: tuple[ThemeRule, ...] = field(default=DEFAULT_THEMES)
    interests: tuple[ThemeRule, ...] = field(default=DEFAULT_INTERESTS)


def _parse_rules(items: list[dict]) -> tuple[ThemeRule, ...]:
    return tuple(
        ThemeRule.compile(item["label"], item["pattern"], int(item.get("weight", 1)))
        for item in items
    )


def load_registry(path: str) -> ThemeRegistry:
    """Load registries from JSON, falling back to the built-in ones.

    Expected format::

        {"themes": [{"label": "...", "pattern": "...", "weight": 1}],
         "interests": [{"label": "...", "pattern": "..."}]}

    Either list may be omitted to keep the default for it.
    """
    config_file = Path(path)
    if not config_file.exists():
        logger.warning(f"Themes config {path} not found, using defaults")
        return ThemeRegistry()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
        themes = _parse_rules(config["themes"]) if "themes" in config else DEFAULT_THEMES
        interests = (
            _parse_rules(config["interests"]) if "interests" in config else DEFAULT_INTERESTS
        )
    except (OSError, ValueError, KeyError, TypeError, re.error) as e:
        logger.warning(f"Themes config {path} is invalid ({e}), using defaults")
        return ThemeRegistry()

    logger.info(
        f"Themes config loaded from {path}: {len(themes)} themes, {len(interests)} interests"
    )
    return ThemeRegistry(themes=themes, interests=interests)
