from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .models import LibraryItem, SessionRecord, VocabularyEntry

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class LibraryRepository(ABC):
    """Whole-library persistence.

    Implementations must serialize writers; callers replace whole items or
    entries and never hold partial updates.
    """

    @abstractmethod
    def load_library(self) -> List[LibraryItem]:
        raise NotImplementedError

    @abstractmethod
    def save_library(self, items: Sequence[LibraryItem]) -> None:
        raise NotImplementedError


class InMemoryLibraryRepository(LibraryRepository):
    """Keeps a private copy of the library in memory."""

    def __init__(self, items: Sequence[LibraryItem] | None = None) -> None:
        self._items: List[LibraryItem] = deepcopy(list(items or []))

    def load_library(self) -> List[LibraryItem]:
        return deepcopy(self._items)

    def save_library(self, items: Sequence[LibraryItem]) -> None:
        self._items = deepcopy(list(items))


class JsonLibraryRepository(LibraryRepository):
    """Stores the library as a single JSON document."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_library(self) -> List[LibraryItem]:
        if not self.path.exists():
            return []
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            raw_items = payload.get("items", [])
        elif isinstance(payload, list):
            raw_items = payload
        else:
            raise ValueError(f"Library file {self.path} must hold a JSON object or list.")
        return [item_from_dict(raw) for raw in raw_items]

    def save_library(self, items: Sequence[LibraryItem]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": FORMAT_VERSION, "items": [item_to_dict(item) for item in items]}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
        logger.debug("Saved %s library items to %s", len(items), self.path)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp, reading values without an offset as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def session_to_dict(session: SessionRecord) -> Dict[str, Any]:
    return {
        "date": session.date.isoformat(),
        "wpm": session.wpm,
        "duration": session.duration,
        "words_read": session.words_read,
    }


def session_from_dict(data: Dict[str, Any]) -> SessionRecord:
    return SessionRecord(
        date=parse_timestamp(data["date"]),
        wpm=int(data["wpm"]),
        duration=float(data["duration"]),
        words_read=int(data["words_read"]),
    )


def entry_to_dict(entry: VocabularyEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "word": entry.word,
        "definition": entry.definition,
        "examples": list(entry.examples),
        "date": entry.date.isoformat(),
        "proficiency": entry.proficiency,
        "next_review": entry.next_review.isoformat(),
    }


def entry_from_dict(data: Dict[str, Any]) -> VocabularyEntry:
    date = parse_timestamp(data["date"])
    next_review = data.get("next_review")
    return VocabularyEntry(
        id=str(data["id"]),
        word=data["word"],
        definition=data.get("definition", ""),
        examples=list(data.get("examples") or []),
        date=date,
        proficiency=int(data.get("proficiency") or 0),
        # Entries saved without a review time are due right away.
        next_review=parse_timestamp(next_review) if next_review else date,
    )


def item_to_dict(item: LibraryItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "content": item.content,
        "date": item.date.isoformat(),
        "last_position": item.last_position,
        "total_words": item.total_words,
        "sessions": [session_to_dict(session) for session in item.sessions],
        "vocabulary": [entry_to_dict(entry) for entry in item.vocabulary],
    }


def item_from_dict(data: Dict[str, Any]) -> LibraryItem:
    return LibraryItem(
        id=str(data["id"]),
        title=data.get("title", ""),
        content=data.get("content", ""),
        date=parse_timestamp(data["date"]),
        last_position=int(data.get("last_position", 0)),
        total_words=int(data.get("total_words", 0)),
        sessions=[session_from_dict(raw) for raw in data.get("sessions", [])],
        vocabulary=[entry_from_dict(raw) for raw in data.get("vocabulary", [])],
    )
