from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta, timezone
from typing import Dict, Iterable, List, Set

from .models import LibraryItem, SessionRecord
from .retention import utcnow

CHART_DAYS = 7


@dataclass(slots=True)
class DayActivity:
    day: date
    words_read: int


@dataclass(slots=True)
class ReadingStats:
    """Aggregate reading history across the library."""

    total_words: int
    total_hours: float
    avg_wpm: int
    current_streak: int
    session_count: int
    chart: List[DayActivity] = field(default_factory=list)


def _session_day(session: SessionRecord) -> date:
    moment = session.date
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def current_streak(active_days: Set[date], today: date) -> int:
    """Consecutive active days ending today; zero when today has no session."""
    if today not in active_days:
        return 0
    streak = 0
    day = today
    while day in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def reading_stats(items: Iterable[LibraryItem], today: date | None = None) -> ReadingStats:
    """Summarize every session in ``items`` relative to ``today`` (UTC)."""
    today = today or utcnow().date()
    chart_days = [today - timedelta(days=offset) for offset in range(CHART_DAYS - 1, -1, -1)]
    activity: Dict[date, int] = {day: 0 for day in chart_days}
    active_days: Set[date] = set()
    total_words = 0
    total_seconds = 0.0
    wpm_sum = 0
    session_count = 0

    for item in items:
        for session in item.sessions:
            total_words += session.words_read
            total_seconds += session.duration
            wpm_sum += session.wpm
            session_count += 1
            day = _session_day(session)
            active_days.add(day)
            if day in activity:
                activity[day] += session.words_read

    return ReadingStats(
        total_words=total_words,
        total_hours=round(total_seconds / 3600, 1),
        avg_wpm=round(wpm_sum / session_count) if session_count else 0,
        current_streak=current_streak(active_days, today),
        session_count=session_count,
        chart=[DayActivity(day=day, words_read=activity[day]) for day in chart_days],
    )
