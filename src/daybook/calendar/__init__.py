"""Calendar computations: almanac metadata and view grids."""

from .almanac import AlmanacInfo, almanac_for
from .grid import (
    DayCell,
    DayView,
    MonthGrid,
    MonthSummary,
    WeekGrid,
    WeekRow,
    YearGrid,
    build_day,
    build_grid,
    build_month,
    build_week,
    build_year,
    shift_anchor,
)

__all__ = [
    "AlmanacInfo",
    "DayCell",
    "DayView",
    "MonthGrid",
    "MonthSummary",
    "WeekGrid",
    "WeekRow",
    "YearGrid",
    "almanac_for",
    "build_day",
    "build_grid",
    "build_month",
    "build_week",
    "build_year",
    "shift_anchor",
]
