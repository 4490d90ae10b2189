from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from breeze_reader.config import ReadingSettings
from breeze_reader.library import LibraryService
from breeze_reader.models import ReadingMode, VocabularyEntry
from breeze_reader.repository import InMemoryLibraryRepository
from breeze_reader.scheduling import ManualScheduler

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def fast_settings() -> ReadingSettings:
    """600 wpm: 100 ms per plain word."""
    return ReadingSettings(wpm=600, chunk_size=1, mode=ReadingMode.SINGLE)


@pytest.fixture
def make_entry() -> Callable[..., VocabularyEntry]:
    def factory(**overrides: Any) -> VocabularyEntry:
        values: dict[str, Any] = {
            "id": "entry-1",
            "word": "lucid",
            "definition": "Expressed clearly; easy to understand.",
            "examples": ["A lucid explanation."],
            "date": FIXED_NOW - timedelta(days=1),
            "proficiency": 0,
            "next_review": FIXED_NOW - timedelta(minutes=1),
        }
        values.update(overrides)
        return VocabularyEntry(**values)

    return factory


@pytest.fixture
def library_service() -> LibraryService:
    return LibraryService(InMemoryLibraryRepository(), clock=lambda: FIXED_NOW)
