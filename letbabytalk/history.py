"""Per-category history of past recordings.

Recordings are filtered by baby first, then by time window, and counted per
cry category. Every canonical category appears in the result, including
those with a zero count; labels the client does not know are appended.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Union

from . import config
from .models import Recording

ALL_BABIES = "all"


class TimeRange(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


@dataclass
class CategoryStat:
    label: str
    title: str
    count: int
    percentage: float


@dataclass
class HistorySummary:
    categories: list[CategoryStat]
    total: int
    top_category: Optional[CategoryStat]
    categories_used: int
    average_per_category: float
    recordings: list[Recording] = field(default_factory=list)


def category_title(label: str) -> str:
    title = config.CATEGORY_TITLES.get(label)
    if title is not None:
        return title
    return label.replace("_", " ").title()


def _as_aware(value: datetime) -> datetime:
    # Naive server timestamps are UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def window_bounds(
    time_range: TimeRange,
    now: datetime,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
) -> tuple[datetime, datetime]:
    """Inclusive ``(start, end)`` for *time_range*, in the timezone of *now*.

    A naive *now* is local wall-clock time.
    """
    if now.tzinfo is None:
        now = now.astimezone()
    tz = now.tzinfo
    today = now.date()
    time_range = TimeRange(time_range)

    if time_range is TimeRange.DAY:
        start_day = today
    elif time_range is TimeRange.WEEK:
        # Weeks start on Sunday
        start_day = today - timedelta(days=(today.weekday() + 1) % 7)
    elif time_range is TimeRange.MONTH:
        start_day = today.replace(day=1)
    else:
        if custom_from is None:
            raise ValueError("A custom range needs a start date")
        last_day = custom_to or custom_from
        if last_day < custom_from:
            raise ValueError("Custom range ends before it starts")
        return (
            datetime.combine(custom_from, time.min, tzinfo=tz),
            datetime.combine(last_day, time.max, tzinfo=tz),
        )

    return datetime.combine(start_day, time.min, tzinfo=tz), now


def filter_recordings(
    recordings: Iterable[Recording],
    time_range: TimeRange,
    now: Optional[datetime] = None,
    baby: Union[int, str] = ALL_BABIES,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
) -> list[Recording]:
    now = now or datetime.now().astimezone()
    if baby != ALL_BABIES:
        recordings = [r for r in recordings if r.baby_profile_id == baby]
    start, end = window_bounds(time_range, now, custom_from, custom_to)
    return [r for r in recordings if start <= _as_aware(r.recorded_at) <= end]


def summarize(
    recordings: Iterable[Recording],
    time_range: TimeRange = TimeRange.DAY,
    now: Optional[datetime] = None,
    baby: Union[int, str] = ALL_BABIES,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
) -> HistorySummary:
    selected = filter_recordings(recordings, time_range, now, baby, custom_from, custom_to)

    counts = {label: 0 for label in config.CANONICAL_CATEGORIES}
    for recording in selected:
        counts[recording.label] = counts.get(recording.label, 0) + 1

    total = len(selected)
    categories = [
        CategoryStat(
            label=label,
            title=category_title(label),
            count=count,
            percentage=(count / total * 100) if total else 0.0,
        )
        for label, count in counts.items()
    ]
    categories.sort(key=lambda c: (-c.count, c.title))

    used = sum(1 for c in categories if c.count > 0)
    return HistorySummary(
        categories=categories,
        total=total,
        top_category=categories[0] if total else None,
        categories_used=used,
        average_per_category=total / max(1, used),
        recordings=selected,
    )
