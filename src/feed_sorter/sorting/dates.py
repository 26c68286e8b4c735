"""Date-range filters and presets applied before sorting."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum

from feed_sorter.errors import SortError
from feed_sorter.models import PostItem


class DatePreset(str, Enum):
    WEEK = "week"
    MONTH1 = "month1"
    MONTH3 = "month3"
    MONTH6 = "month6"
    YEAR1 = "year1"
    ALL = "all"


PRESET_DAYS = {
    DatePreset.WEEK: 7,
    DatePreset.MONTH1: 30,
    DatePreset.MONTH3: 90,
    DatePreset.MONTH6: 180,
    DatePreset.YEAR1: 365,
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive timestamp window; a missing bound is open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and _aware(self.start) > _aware(self.end):
            raise SortError(
                f"Date range start {self.start.isoformat()} is after end {self.end.isoformat()}."
            )

    def contains(self, value: datetime) -> bool:
        moment = _aware(value)
        if self.start is not None and moment < _aware(self.start):
            return False
        if self.end is not None and moment > _aware(self.end):
            return False
        return True

    def is_older(self, value: datetime) -> bool:
        return self.start is not None and _aware(value) < _aware(self.start)


def date_range_from_preset(preset: DatePreset | str, *, now: datetime | None = None) -> DateRange | None:
    """Resolve a preset relative to ``now``; ``all`` means no filter."""
    try:
        resolved = preset if isinstance(preset, DatePreset) else DatePreset(str(preset).strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in DatePreset)
        raise SortError(f"Unsupported date preset '{preset}'. Use one of: {choices}.") from exc
    if resolved is DatePreset.ALL:
        return None
    reference = _aware(now or datetime.now(timezone.utc))
    return DateRange(start=reference - timedelta(days=PRESET_DAYS[resolved]), end=reference)


def date_range_from_dates(
    date_from: date | None,
    date_to: date | None,
    *,
    tz: tzinfo = timezone.utc,
) -> DateRange | None:
    """Build a calendar-day range: start of ``date_from`` through end of ``date_to``."""
    if date_from is None and date_to is None:
        return None
    start = datetime.combine(date_from, time.min, tzinfo=tz) if date_from is not None else None
    end = (
        datetime.combine(date_to, time(23, 59, 59, 999_999), tzinfo=tz) if date_to is not None else None
    )
    return DateRange(start=start, end=end)


def reached_date_boundary(items: Iterable[PostItem], date_range: DateRange | None) -> bool:
    """True once the collection holds both in-range items and items older than the range."""
    if date_range is None or date_range.start is None:
        return False
    has_in_range = False
    has_older = False
    for item in items:
        if item.timestamp is None:
            continue
        if date_range.is_older(item.timestamp):
            has_older = True
        elif date_range.contains(item.timestamp):
            has_in_range = True
        if has_in_range and has_older:
            return True
    return False


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
