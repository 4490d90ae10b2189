from __future__ import annotations

from typing import Tuple

from .models import OrpSplit

# (max length, orp index) buckets; longer words anchor at ORP_MAX.
ORP_BUCKETS: Tuple[Tuple[int, int], ...] = ((1, 0), (5, 1), (9, 2), (13, 3))
ORP_MAX = 4


def orp_index(length: int) -> int:
    """Return the fixation index for a token of ``length`` characters."""
    for max_length, index in ORP_BUCKETS:
        if length <= max_length:
            return index
    return ORP_MAX


def split_orp(text: str) -> OrpSplit:
    """Split ``text`` into the parts left of, at, and right of its ORP."""
    orp = orp_index(len(text))
    return OrpSplit(
        left=text[:orp],
        center=text[orp : orp + 1],
        right=text[orp + 1 :],
        orp=orp,
    )
