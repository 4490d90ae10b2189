from __future__ import annotations

from typing import Dict, List, Sequence

from .config import ReadingSettings
from .models import Exposure, Token, TrailingClass

MS_PER_MINUTE = 60_000.0

# Only one multiplier applies; sentence endings win over clause endings,
# which win over the long-word rule.
PUNCTUATION_MULTIPLIERS: Dict[TrailingClass, float] = {
    TrailingClass.SENTENCE: 2.0,
    TrailingClass.CLAUSE: 1.5,
}
LONG_WORD_THRESHOLD = 10
LONG_WORD_MULTIPLIER = 1.2


def delay_multiplier(token: Token) -> float:
    """Return the dwell multiplier for a token."""
    multiplier = PUNCTUATION_MULTIPLIERS.get(token.trailing_class)
    if multiplier is not None:
        return multiplier
    if token.length > LONG_WORD_THRESHOLD:
        return LONG_WORD_MULTIPLIER
    return 1.0


def base_delay_ms(settings: ReadingSettings) -> float:
    """Milliseconds per exposure before punctuation adjustments."""
    return MS_PER_MINUTE / settings.wpm * settings.step


def compute_delay_ms(token: Token | None, settings: ReadingSettings) -> float:
    """Milliseconds the given token stays on screen at the configured pace."""
    base = base_delay_ms(settings)
    if token is None:
        return base
    return base * delay_multiplier(token)


def time_remaining_seconds(token_count: int, position: int, wpm: int) -> float:
    """Nominal reading time left from ``position`` at ``wpm``, ignoring pauses."""
    left = max(0, token_count - position)
    return left / wpm * 60.0


def format_duration(seconds: float) -> str:
    """Render seconds as ``"<m>m <s>s"``."""
    whole = int(seconds)
    return f"{whole // 60}m {whole % 60}s"


def build_timeline(tokens: Sequence[Token], settings: ReadingSettings, start: int = 0) -> List[Exposure]:
    """Return every exposure an uninterrupted play run from ``start`` produces."""
    settings.validate()
    exposures: List[Exposure] = []
    if not tokens:
        return exposures
    position = min(max(0, start), len(tokens) - 1)
    elapsed = 0.0
    while position < len(tokens):
        token = tokens[position]
        delay = compute_delay_ms(token, settings)
        chunk = tokens[position : position + settings.step]
        exposures.append(
            Exposure(
                index=position,
                text=" ".join(item.text for item in chunk),
                start_ms=elapsed,
                delay_ms=delay,
            )
        )
        elapsed += delay
        position += settings.step
    return exposures
