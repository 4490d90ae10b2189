from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

SENTENCE_END_CHARS = ".!?"
CLAUSE_END_CHARS = ",;:"


class ReadingMode(str, Enum):
    """How the reader presents tokens."""

    SINGLE = "single"
    CHUNK = "chunk"
    FLOW = "flow"
    CLASSIC = "classic"


class PlayState(str, Enum):
    """States of the pacing controller."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    CONTEXT_VIEW = "context_view"
    FINISHED = "finished"


class TrailingClass(str, Enum):
    """Punctuation class of a token's last character."""

    SENTENCE = "sentence"
    CLAUSE = "clause"
    NONE = "none"


class Rating(str, Enum):
    """Review grades accepted by the retention scheduler."""

    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


@dataclass(frozen=True, slots=True)
class Token:
    """A whitespace-delimited unit of text and its position in the stream."""

    index: int
    text: str

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def trailing_class(self) -> TrailingClass:
        if not self.text:
            return TrailingClass.NONE
        last = self.text[-1]
        if last in SENTENCE_END_CHARS:
            return TrailingClass.SENTENCE
        if last in CLAUSE_END_CHARS:
            return TrailingClass.CLAUSE
        return TrailingClass.NONE


@dataclass(frozen=True, slots=True)
class OrpSplit:
    """A token split around its optical recognition point."""

    left: str
    center: str
    right: str
    orp: int


@dataclass(frozen=True, slots=True)
class EmphasisSplit:
    """A token split into an emphasized lead and a light tail.

    ``emphasized`` is False for tokens without an alphanumeric core; those
    are carried whole in ``prefix``.
    """

    prefix: str
    bold: str
    light: str
    suffix: str
    emphasized: bool = True

    @property
    def text(self) -> str:
        return self.prefix + self.bold + self.light + self.suffix


@dataclass(frozen=True, slots=True)
class Exposure:
    """One timed presentation in a play run."""

    index: int
    text: str
    start_ms: float
    delay_ms: float


@dataclass(frozen=True, slots=True)
class PacingState:
    """Snapshot of the pacing controller."""

    position: int
    play_state: PlayState
    wpm: int
    mode: ReadingMode
    chunk_size: int
    started_at: float | None
    token_count: int


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Metrics for a completed play run."""

    date: datetime
    wpm: int
    duration: float
    words_read: int


@dataclass(frozen=True, slots=True)
class Definition:
    """Result of a definition lookup."""

    definition: str
    examples: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class VocabularyEntry:
    """A looked-up word tracked for spaced review."""

    id: str
    word: str
    definition: str
    examples: list[str]
    date: datetime
    proficiency: int
    next_review: datetime


@dataclass(slots=True)
class LibraryItem:
    """A stored text with its reading history and saved vocabulary."""

    id: str
    title: str
    content: str
    date: datetime
    last_position: int = 0
    total_words: int = 0
    sessions: list[SessionRecord] = field(default_factory=list)
    vocabulary: list[VocabularyEntry] = field(default_factory=list)
