"""Parsers that turn raw model text into structured task results.

All parsers are total: malformed model output degrades to defaults
instead of raising.
"""

import re

from aiclient.types import Sentiment

SENTIMENTS: frozenset[str] = frozenset({"positive", "neutral", "negative"})
DEFAULT_SENTIMENT: Sentiment = "neutral"
DEFAULT_SENTIMENT_SCORE = 0.5

TWO_LETTER_CONFIDENCE = 0.9
OTHER_CONFIDENCE = 0.7

_BULLET_MARKER = re.compile(r"^[-*•]\s*")
# Leading number only, so "0.9 (high)" parses as 0.9
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_bullets(text: str) -> list[str]:
    """Split a bullet-list response into clean items.

    >>> parse_bullets("- First\\n* Second\\n\\nThird")
    ['First', 'Second', 'Third']
    """
    bullets = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        line = _BULLET_MARKER.sub("", line, count=1)
        if line:
            bullets.append(line)
    return bullets


def parse_keywords(text: str) -> list[str]:
    """Split a comma-separated keyword response."""
    return [keyword.strip() for keyword in text.split(",") if keyword.strip()]


def parse_language(text: str) -> tuple[str, float]:
    """Normalize a language-code response and estimate confidence.

    Returns:
        (language, confidence): 0.9 for an exact 2-character code, else 0.7.
    """
    language = text.strip().lower()
    confidence = TWO_LETTER_CONFIDENCE if len(language) == 2 else OTHER_CONFIDENCE
    return language, confidence


def _parse_leading_float(value: str) -> float | None:
    match = _LEADING_FLOAT.match(value.strip())
    if match is None:
        return None
    return float(match.group(0))


def parse_sentiment(text: str) -> tuple[Sentiment, float]:
    """Parse a ``SENTIMENT|SCORE`` response.

    Unknown sentiment labels become "neutral"; a missing or unparseable score
    becomes 0.5; scores are clamped to [0, 1].
    """
    parts = text.split("|")

    sentiment: Sentiment = DEFAULT_SENTIMENT
    label = parts[0].strip().lower()
    if label in SENTIMENTS:
        sentiment = label  # type: ignore[assignment]

    score = DEFAULT_SENTIMENT_SCORE
    if len(parts) >= 2:
        parsed = _parse_leading_float(parts[1])
        if parsed is not None:
            score = max(0.0, min(1.0, parsed))

    return sentiment, score
