"""Derivations shared by all adapters."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta, timezone

from codetrack.platforms.base import LanguageCount, SubmissionDay

# Today plus the preceding 30 days.
WINDOW_DAYS = 31


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def utc_day(timestamp: float) -> date:
    """UTC calendar day of a unix timestamp."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


def submission_window(calendar: Mapping[date, int], today: date | None = None) -> list[SubmissionDay]:
    """Project a day -> count calendar onto the fixed 31-day window, zero-filling gaps."""
    end = today or utc_today()
    start = end - timedelta(days=WINDOW_DAYS - 1)
    return [
        SubmissionDay(date=day, count=int(calendar.get(day, 0)))
        for day in (start + timedelta(days=offset) for offset in range(WINDOW_DAYS))
    ]


def calendar_from_timestamps(timestamps: Iterable[float]) -> dict[date, int]:
    """Count events per UTC day."""
    return dict(Counter(utc_day(ts) for ts in timestamps))


def calendar_from_counts(counts: Mapping[str, int]) -> dict[date, int]:
    """Fold a ``{"<unix seconds>": count}`` map into per-UTC-day totals."""
    calendar: dict[date, int] = {}
    for ts, count in counts.items():
        day = utc_day(int(ts))
        calendar[day] = calendar.get(day, 0) + int(count)
    return calendar


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def language_breakdown(counts: Mapping[str, int]) -> list[LanguageCount]:
    """Percentages over the non-zero entries, largest first."""
    nonzero = {lang: int(n) for lang, n in counts.items() if lang and int(n) > 0}
    total = sum(nonzero.values())
    if total == 0:
        return []
    return [
        LanguageCount(language=lang, count=n, percentage=format_percentage(n / total * 100))
        for lang, n in sorted(nonzero.items(), key=lambda item: item[1], reverse=True)
    ]
