from __future__ import annotations

import re
from typing import Tuple

from .models import Token

WHITESPACE_RE = re.compile(r"\s+", re.UNICODE)


def tokenize(text: str) -> Tuple[Token, ...]:
    """Split text on whitespace runs into an immutable token sequence."""
    fragments = [fragment for fragment in WHITESPACE_RE.split(text) if fragment]
    return tuple(Token(index=idx, text=fragment) for idx, fragment in enumerate(fragments))


def count_words(text: str) -> int:
    """Return the number of tokens ``tokenize`` would produce."""
    return sum(1 for fragment in WHITESPACE_RE.split(text) if fragment)
