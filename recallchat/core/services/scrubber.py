"""Text scrubber - strips leaked reasoning from model output."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

_THINK_SPAN_RE = re.compile(r"<think>(.*?)</think>", re.DOTALL | re.IGNORECASE)

# Lower-case discourse starters that mark a reasoning preamble paragraph.
THINKING_STARTERS = (
    "okay", "ok", "let me", "i need to", "i should", "i'll", "i will", "i can",
    "i'm going to", "let's", "wait", "hmm", "let me think", "let's see",
    "i think", "maybe", "actually", "so", "alright", "right", "now", "first",
    "the user", "i understand", "i see",
    "tamam", "peki", "şimdi", "öncelikle", "ilk olarak", "bakalım", "düşüneyim",
    "belki", "aslında", "şöyle", "hımm", "şey", "evet", "hayır",
    "kullanıcı", "anladım", "görüyorum",
)

# A reasoning sentence runs up to a blank line or a new line starting with a letter.
_UNTIL_NEXT_BLOCK = r"[,\s].+?(?=\n\n|\n(?=[A-Za-zÇĞİÖŞÜçğıöşü]))"

_SENTENCE_STARTS = (
    # English
    r"Okay|Ok|Let me|I need to|I should|I'll|I will|I can|I'm going to|Let's|Wait|Hmm"
    r"|Let me think|Let's see|I think|Maybe|Actually|So|Alright|Right|Now|First|Next"
    r"|Then|Finally|In conclusion|To summarize|In summary",
    r"The user is asking|The user wants|The user needs",
    r"I understand that|I see that",
    # Turkish
    r"Tamam|Peki|Şimdi|Öncelikle|İlk olarak|Bakalım|Düşüneyim|Belki|Aslında|Şöyle"
    r"|Hmm|Hımm|Şey|Evet|Hayır",
    r"Yapmam gereken|Yapmalıyım|Yapacağım|Yapabilirim",
    r"Hadi|Bekle|Sanırım|Yani",
    r"Sonra|Daha sonra|Son olarak",
    r"Sonuç olarak|Özetlemek gerekirse|Özetle",
    r"Kullanıcı istiyor|Kullanıcı soruyor|Kullanıcı şunu istiyor|Kullanıcının isteği",
    r"Anladığım kadarıyla|Görüyorum ki",
)

SENTENCE_PATTERNS = tuple(
    re.compile(rf"^(?:{starts}){_UNTIL_NEXT_BLOCK}", re.IGNORECASE | re.DOTALL)
    for starts in _SENTENCE_STARTS
)

PARAGRAPH_PATTERNS = tuple(
    re.compile(rf"^.*?(?:{phrases}).*?\n\n", re.IGNORECASE)
    for phrases in (
        r"düşünme sürecim|düşünce sürecim|düşünelim|düşünüyorum|analiz ediyorum",
        r"my thinking process|let me think|i'm thinking|analyzing",
        r"adım adım|step by step",
    )
)


@dataclass(frozen=True)
class ScrubResult:
    """Canonical content plus the reasoning that was taken out of it."""
    content: str
    thinking: Optional[str] = None


def _starts_with_phrase(text: str, phrase: str) -> bool:
    if not text.startswith(phrase):
        return False
    rest = text[len(phrase):]
    return not rest or not (rest[0].isalnum() or rest[0] == "_")


class TextScrubber:
    """Removes chain-of-thought leakage before content is stored or shown.

    Scrubbing runs its passes until nothing changes, so scrubbing already
    scrubbed text is a no-op. It never returns an empty string for
    non-empty input: when everything would be removed, the original text is
    returned untouched.
    """

    def __init__(
        self,
        starters: tuple[str, ...] = THINKING_STARTERS,
        sentence_patterns: tuple[re.Pattern, ...] = SENTENCE_PATTERNS,
        paragraph_patterns: tuple[re.Pattern, ...] = PARAGRAPH_PATTERNS,
    ):
        self._starters = starters
        self._sentence_patterns = sentence_patterns
        self._paragraph_patterns = paragraph_patterns

    def scrub(self, content: Optional[str]) -> ScrubResult:
        """Extract explicit thinking markup and drop implicit reasoning."""
        if not content:
            return ScrubResult(content="")

        thinking_parts: list[str] = []
        text = content
        while True:
            extracted, parts = self._extract_thinking(text)
            thinking_parts.extend(parts)
            cleaned = self._clean_once(extracted)
            if cleaned == text:
                break
            text = cleaned

        thinking = "\n\n".join(thinking_parts) or None
        if not text:
            logger.info("Scrubbing left no content, keeping original text")
            return ScrubResult(content=content, thinking=thinking)
        return ScrubResult(content=text, thinking=thinking)

    def clean(self, content: Optional[str]) -> str:
        """Drop implicit reasoning only, leaving explicit markup alone."""
        if not content:
            return ""

        text = content
        while True:
            cleaned = self._clean_once(text)
            if cleaned == text:
                break
            text = cleaned

        return text or content

    def _extract_thinking(self, text: str) -> tuple[str, list[str]]:
        parts = [m.strip() for m in _THINK_SPAN_RE.findall(text)]
        text = _THINK_SPAN_RE.sub("", text)

        lowered = text.lower()
        close_at = lowered.find(THINK_CLOSE)
        if close_at != -1:
            # Opening tag lost upstream: everything before the close is reasoning.
            parts.append(text[:close_at].strip())
            text = text[close_at + len(THINK_CLOSE):]
            lowered = text.lower()

        open_at = lowered.find(THINK_OPEN)
        if open_at != -1:
            # Truncated reply: reasoning never closed.
            parts.append(text[open_at + len(THINK_OPEN):].strip())
            text = text[:open_at]

        return text, [p for p in parts if p]

    def _clean_once(self, text: str) -> str:
        text = self._drop_reasoning_paragraph(text)
        for pattern in self._sentence_patterns:
            text = pattern.sub("", text, count=1)
        for pattern in self._paragraph_patterns:
            text = pattern.sub("", text, count=1)
        return text.strip()

    def _drop_reasoning_paragraph(self, text: str) -> str:
        paragraphs = text.split("\n\n")
        if len(paragraphs) < 2:
            return text
        first = paragraphs[0].lower().strip()
        if any(_starts_with_phrase(first, s) for s in self._starters):
            return "\n\n".join(paragraphs[1:])
        return text
