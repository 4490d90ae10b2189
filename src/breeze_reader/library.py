from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, List

from .errors import InvalidArgument, LibraryItemNotFound, VocabularyEntryNotFound
from .models import LibraryItem, SessionRecord, VocabularyEntry
from .repository import LibraryRepository
from .retention import utcnow
from .simplify import Simplifier
from .tokenization import count_words

logger = logging.getLogger(__name__)


class LibraryService:
    """Library operations on top of a repository.

    Every mutation loads the library, replaces one item, and saves the
    whole collection back.
    """

    def __init__(
        self, repository: LibraryRepository, clock: Callable[[], datetime] = utcnow
    ) -> None:
        self._repository = repository
        self._clock = clock

    def items(self) -> List[LibraryItem]:
        return self._repository.load_library()

    def get_item(self, item_id: str) -> LibraryItem:
        for item in self._repository.load_library():
            if item.id == item_id:
                return item
        raise LibraryItemNotFound(item_id)

    def get_content(self, item_id: str) -> str:
        return self.get_item(item_id).content

    def add_item(self, title: str, content: str) -> LibraryItem:
        """Store a new text at the front of the library."""
        if not content.strip():
            raise InvalidArgument("Cannot add an item without text.")
        items = self._repository.load_library()
        item = LibraryItem(
            id=uuid.uuid4().hex,
            title=title.strip() or f"Untitled Session {len(items) + 1}",
            content=content,
            date=self._clock(),
            total_words=count_words(content),
        )
        self._repository.save_library([item, *items])
        logger.info("Added '%s' (%s words)", item.title, item.total_words)
        return item

    def remove(self, item_id: str) -> None:
        items = self._repository.load_library()
        kept = [item for item in items if item.id != item_id]
        if len(kept) == len(items):
            raise LibraryItemNotFound(item_id)
        self._repository.save_library(kept)

    def rename(self, item_id: str, title: str) -> LibraryItem:
        def apply(item: LibraryItem) -> None:
            item.title = title

        return self._update(item_id, apply)

    def update_position(self, item_id: str, position: int) -> LibraryItem:
        def apply(item: LibraryItem) -> None:
            item.last_position = position

        return self._update(item_id, apply)

    def log_session(
        self, item_id: str, wpm: int, words_read: int, duration: float
    ) -> SessionRecord:
        session = SessionRecord(
            date=self._clock(), wpm=wpm, duration=duration, words_read=words_read
        )

        def apply(item: LibraryItem) -> None:
            item.sessions.append(session)

        self._update(item_id, apply)
        logger.info("Logged %s words at %s wpm for %s", words_read, wpm, item_id)
        return session

    def add_vocabulary(self, item_id: str, entry: VocabularyEntry) -> LibraryItem:
        def apply(item: LibraryItem) -> None:
            item.vocabulary.insert(0, entry)

        return self._update(item_id, apply)

    def replace_entry(self, entry: VocabularyEntry) -> None:
        """Swap in ``entry`` wherever an entry with the same id is stored."""
        items = self._repository.load_library()
        found = False
        for item in items:
            for idx, existing in enumerate(item.vocabulary):
                if existing.id == entry.id:
                    item.vocabulary[idx] = entry
                    found = True
        if not found:
            raise VocabularyEntryNotFound(entry.id)
        self._repository.save_library(items)

    def all_vocabulary(self) -> List[VocabularyEntry]:
        """Every saved entry across the library, newest first."""
        entries = [entry for item in self._repository.load_library() for entry in item.vocabulary]
        return sorted(entries, key=lambda entry: entry.date, reverse=True)

    def replace_content(self, item_id: str, content: str) -> LibraryItem:
        """Replace an item's text and restart reading from the top."""

        def apply(item: LibraryItem) -> None:
            item.content = content
            item.total_words = count_words(content)
            item.last_position = 0

        return self._update(item_id, apply)

    def simplify_item(self, item_id: str, simplifier: Simplifier) -> LibraryItem:
        simplified = simplifier.simplify(self.get_content(item_id))
        return self.replace_content(item_id, simplified)

    def position_listener(self, item_id: str, every: int = 1) -> Callable[[int], None]:
        """A positionChanged listener that persists the read position.

        Only every ``every``-th change is written; callers that pass more
        than 1 save the final position themselves when playback stops.
        """
        if every < 1:
            raise InvalidArgument(f"every must be >= 1, got {every!r}.")
        changes = 0

        def listener(position: int) -> None:
            nonlocal changes
            changes += 1
            if changes % every == 0:
                self.update_position(item_id, position)

        return listener

    def session_listener(self, item_id: str) -> Callable[[int, int, float], None]:
        """A sessionEnded listener that appends the session to the item's history."""

        def listener(wpm: int, words_read: int, duration: float) -> None:
            self.log_session(item_id, wpm, words_read, duration)

        return listener

    def _update(self, item_id: str, apply: Callable[[LibraryItem], None]) -> LibraryItem:
        items = self._repository.load_library()
        for item in items:
            if item.id == item_id:
                apply(item)
                self._repository.save_library(items)
                return item
        raise LibraryItemNotFound(item_id)
