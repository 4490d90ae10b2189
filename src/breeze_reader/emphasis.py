from __future__ import annotations

import math
import re
from typing import List

from .errors import InvalidArgument
from .models import EmphasisSplit

# Leading punctuation, core word, trailing punctuation. Underscore counts as
# punctuation so the core is strictly alphanumeric at both ends.
WORD_PARTS_RE = re.compile(r"^([\W_]*)(.*?)([\W_]*)$", re.UNICODE | re.DOTALL)
WHITESPACE_SPLIT_RE = re.compile(r"(\s+)", re.UNICODE)


def emphasize(text: str, bold_ratio: float) -> EmphasisSplit:
    """Split a token into a bold lead and light tail for guided reading.

    The bold lead covers ``ceil(len(core) * bold_ratio)`` characters of the
    core word, never fewer than one. Surrounding punctuation passes through
    untouched, and a token with no core comes back as a single plain unit.
    """
    if not 0.0 <= bold_ratio <= 1.0:
        raise InvalidArgument(f"bold_ratio must be within [0, 1], got {bold_ratio!r}.")
    match = WORD_PARTS_RE.match(text)
    if match is None or not match.group(2):
        return EmphasisSplit(prefix=text, bold="", light="", suffix="", emphasized=False)
    prefix, core, suffix = match.groups()
    bold_length = max(1, math.ceil(len(core) * bold_ratio))
    return EmphasisSplit(
        prefix=prefix,
        bold=core[:bold_length],
        light=core[bold_length:],
        suffix=suffix,
    )


def emphasize_text(text: str, bold_ratio: float) -> List[EmphasisSplit]:
    """Emphasize every word of a passage, keeping whitespace runs as plain units."""
    parts: List[EmphasisSplit] = []
    for part in WHITESPACE_SPLIT_RE.split(text):
        if not part:
            continue
        if part.isspace():
            parts.append(
                EmphasisSplit(prefix=part, bold="", light="", suffix="", emphasized=False)
            )
            continue
        parts.append(emphasize(part, bold_ratio))
    return parts
