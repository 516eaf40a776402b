"""Layout-agnostic calendar grids for the year, month, week and day views.

Weeks start on Sunday everywhere. Grids only ask whether a date has an entry
(``has_entry``); they never read entry content.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta

from daybook.core.exceptions import EntryValidationError
from daybook.journal.models import Granularity, parse_date_key

from .almanac import AlmanacInfo, almanac_for

HasEntry = Callable[[str], bool]

DAYS_PER_WEEK = 7


def _no_entries(_date_key: str) -> bool:
    return False


@dataclass(frozen=True)
class DayCell:
    """One cell of a grid.

    ``current`` is False for padding days borrowed from adjacent months;
    those cells carry no date key.
    """

    day: int
    current: bool
    date_key: str | None = None
    has_entry: bool = False


@dataclass(frozen=True)
class WeekRow:
    week_of_month: int
    cells: tuple[DayCell, ...]


@dataclass(frozen=True)
class MonthGrid:
    year: int
    month: int
    rows: tuple[WeekRow, ...]

    @property
    def cells(self) -> list[DayCell]:
        return [cell for row in self.rows for cell in row.cells]


@dataclass(frozen=True)
class WeekGrid:
    start: date
    cells: tuple[DayCell, ...]


@dataclass(frozen=True)
class MonthSummary:
    month: int
    day_count: int
    days_with_entries: tuple[int, ...]


@dataclass(frozen=True)
class YearGrid:
    year: int
    months: tuple[MonthSummary, ...]


@dataclass(frozen=True)
class DayView:
    date_key: str
    weekday: int
    has_entry: bool
    almanac: AlmanacInfo


Grid = YearGrid | MonthGrid | WeekGrid | DayView


def first_weekday_offset(year: int, month: int) -> int:
    """Sunday-based column (0-6) of the first day of the month."""
    return (date(year, month, 1).weekday() + 1) % 7


def week_of_month(day: date) -> int:
    return math.ceil((day.day + first_weekday_offset(day.year, day.month)) / DAYS_PER_WEEK)


def start_of_week(day: date) -> date:
    """The Sunday on or before *day*."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def build_month(year: int, month: int, has_entry: HasEntry | None = None) -> MonthGrid:
    has_entry = has_entry or _no_entries
    offset = first_weekday_offset(year, month)
    prev_days = days_in_month(*_previous_month(year, month))

    cells = [DayCell(day=prev_days - i, current=False) for i in range(offset - 1, -1, -1)]
    for day in range(1, days_in_month(year, month) + 1):
        key = date(year, month, day).isoformat()
        cells.append(DayCell(day=day, current=True, date_key=key, has_entry=has_entry(key)))
    trailing = (-len(cells)) % DAYS_PER_WEEK
    cells.extend(DayCell(day=day, current=False) for day in range(1, trailing + 1))

    rows = []
    for start in range(0, len(cells), DAYS_PER_WEEK):
        chunk = tuple(cells[start : start + DAYS_PER_WEEK])
        first_in_month = next(c.day for c in chunk if c.current)
        rows.append(WeekRow(week_of_month=week_of_month(date(year, month, first_in_month)), cells=chunk))
    return MonthGrid(year=year, month=month, rows=tuple(rows))


def build_week(anchor: date | str, has_entry: HasEntry | None = None) -> WeekGrid:
    has_entry = has_entry or _no_entries
    start = start_of_week(parse_date_key(anchor))
    cells = []
    for i in range(DAYS_PER_WEEK):
        day = start + timedelta(days=i)
        key = day.isoformat()
        cells.append(DayCell(day=day.day, current=True, date_key=key, has_entry=has_entry(key)))
    return WeekGrid(start=start, cells=tuple(cells))


def build_year(year: int, has_entry: HasEntry | None = None) -> YearGrid:
    has_entry = has_entry or _no_entries
    months = []
    for month in range(1, 13):
        count = days_in_month(year, month)
        marked = tuple(d for d in range(1, count + 1) if has_entry(date(year, month, d).isoformat()))
        months.append(MonthSummary(month=month, day_count=count, days_with_entries=marked))
    return YearGrid(year=year, months=tuple(months))


def build_day(anchor: date | str, has_entry: HasEntry | None = None) -> DayView:
    day = parse_date_key(anchor)
    key = day.isoformat()
    return DayView(
        date_key=key,
        weekday=(day.weekday() + 1) % 7,
        has_entry=(has_entry or _no_entries)(key),
        almanac=almanac_for(day),
    )


def build_grid(granularity: Granularity, anchor: date | str, has_entry: HasEntry | None = None) -> Grid:
    """Build the grid for *granularity* around *anchor*."""
    day = parse_date_key(anchor)
    match Granularity(granularity):
        case Granularity.YEAR:
            return build_year(day.year, has_entry)
        case Granularity.MONTH:
            return build_month(day.year, day.month, has_entry)
        case Granularity.WEEK:
            return build_week(day, has_entry)
        case Granularity.DAY:
            return build_day(day, has_entry)


def shift_anchor(granularity: Granularity, anchor: date | str, step: int = 1) -> date:
    """Move *anchor* by *step* periods of *granularity* (negative steps go back).

    Month and year moves land on the first of the month; week and day moves
    are fixed 7 and 1 day offsets.

    Raises:
        EntryValidationError: the move leaves the supported years 1-9999.
    """
    day = parse_date_key(anchor)
    granularity = Granularity(granularity)
    try:
        match granularity:
            case Granularity.YEAR:
                return date(day.year + step, day.month, 1)
            case Granularity.MONTH:
                index = day.year * 12 + (day.month - 1) + step
                return date(index // 12, index % 12 + 1, 1)
            case Granularity.WEEK:
                return day + timedelta(days=DAYS_PER_WEEK * step)
            case Granularity.DAY:
                return day + timedelta(days=step)
    except (ValueError, OverflowError) as e:
        raise EntryValidationError(
            f"Cannot move {day.isoformat()} by {step} {granularity.value.lower()}: out of range"
        ) from e
