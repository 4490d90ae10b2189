"""
Spaced-repetition grading for saved vocabulary.

Grades map to a fixed review interval and a proficiency change; there is
no per-entry memory model. Proficiency runs from 0 (new) to 5 and is
clamped at both ends.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Sequence

from .errors import InvalidArgument
from .models import Rating, VocabularyEntry

logger = logging.getLogger(__name__)

MIN_PROFICIENCY = 0
MAX_PROFICIENCY = 5
MASTERED_ABOVE = 3


@dataclass(frozen=True, slots=True)
class ReviewPolicy:
    interval: timedelta
    proficiency_delta: int


REVIEW_POLICIES: Dict[Rating, ReviewPolicy] = {
    Rating.HARD: ReviewPolicy(interval=timedelta(minutes=10), proficiency_delta=-1),
    Rating.GOOD: ReviewPolicy(interval=timedelta(minutes=1440), proficiency_delta=1),
    Rating.EASY: ReviewPolicy(interval=timedelta(minutes=4320), proficiency_delta=2),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_rating(value: Rating | str) -> Rating:
    """Coerce a rating name into a Rating, raising InvalidArgument for anything else."""
    if isinstance(value, Rating):
        return value
    try:
        return Rating(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidArgument(
            f"Unknown rating {value!r}; expected one of {[r.value for r in Rating]}."
        ) from exc


def clamp_proficiency(value: int) -> int:
    return min(MAX_PROFICIENCY, max(MIN_PROFICIENCY, value))


def grade(
    entry: VocabularyEntry, rating: Rating | str, now: datetime | None = None
) -> VocabularyEntry:
    """Return ``entry`` rescheduled for the given review grade.

    The input entry is never modified; an unknown rating raises
    InvalidArgument before anything is computed.
    """
    parsed = parse_rating(rating)
    policy = REVIEW_POLICIES[parsed]
    moment = now or utcnow()
    updated = replace(
        entry,
        proficiency=clamp_proficiency(entry.proficiency + policy.proficiency_delta),
        next_review=moment + policy.interval,
    )
    logger.info(
        "Graded '%s' %s: proficiency %s→%s, next review %s",
        entry.word,
        parsed.value,
        entry.proficiency,
        updated.proficiency,
        updated.next_review.isoformat(),
    )
    return updated


def is_due(entry: VocabularyEntry, now: datetime) -> bool:
    return entry.next_review <= now


def due_queue(entries: Iterable[VocabularyEntry], now: datetime | None = None) -> List[VocabularyEntry]:
    """Entries due for review, newest first."""
    moment = now or utcnow()
    due = [entry for entry in entries if is_due(entry, moment)]
    return sorted(due, key=lambda entry: entry.date, reverse=True)


def is_mastered(entry: VocabularyEntry) -> bool:
    return entry.proficiency > MASTERED_ABOVE


def search_vocabulary(entries: Iterable[VocabularyEntry], query: str) -> List[VocabularyEntry]:
    """Case-insensitive substring search over words, newest first."""
    needle = query.lower()
    matches = [entry for entry in entries if needle in entry.word.lower()]
    return sorted(matches, key=lambda entry: entry.date, reverse=True)


def new_entry(
    word: str,
    definition: str,
    examples: Sequence[str] = (),
    now: datetime | None = None,
    entry_id: str | None = None,
) -> VocabularyEntry:
    """Create an entry that is due immediately."""
    moment = now or utcnow()
    return VocabularyEntry(
        id=entry_id or uuid.uuid4().hex,
        word=word,
        definition=definition,
        examples=[example for example in examples if example],
        date=moment,
        proficiency=MIN_PROFICIENCY,
        next_review=moment,
    )


class ReviewSession:
    """Walks a due queue one card at a time.

    Each graded entry is handed to ``on_graded`` (typically a repository
    replace) before the session moves to the next card.
    """

    def __init__(
        self,
        entries: Iterable[VocabularyEntry],
        on_graded: Callable[[VocabularyEntry], None] | None = None,
        now: datetime | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._queue = due_queue(entries, now or clock())
        self._on_graded = on_graded
        self._clock = clock
        self._index = 0
        self.graded: List[VocabularyEntry] = []

    @property
    def remaining(self) -> int:
        return len(self._queue) - self._index

    @property
    def finished(self) -> bool:
        return self._index >= len(self._queue)

    @property
    def current(self) -> VocabularyEntry | None:
        if self.finished:
            return None
        return self._queue[self._index]

    def grade_current(self, rating: Rating | str) -> VocabularyEntry:
        card = self.current
        if card is None:
            raise InvalidArgument("No cards left to review.")
        updated = grade(card, rating, self._clock())
        if self._on_graded is not None:
            self._on_graded(updated)
        self.graded.append(updated)
        self._index += 1
        return updated
