"""daybook calendar / almanac: browse the calendar and daily almanac."""

from __future__ import annotations

import calendar as _calendar

import click

from daybook.calendar.almanac import AlmanacInfo, almanac_for
from daybook.calendar.grid import DayView, Grid, MonthGrid, WeekGrid, YearGrid
from daybook.cli.common import resolve_date, run_with_session
from daybook.core.exceptions import EntryValidationError
from daybook.journal.models import Granularity

WEEKDAY_HEADER = "Su Mo Tu We Th Fr Sa"


def _cell(day: int, current: bool, has_entry: bool) -> str:
    if not current:
        return "   "
    return f"{day:>2}" + ("*" if has_entry else " ")


def format_almanac(info: AlmanacInfo) -> str:
    return "\n".join(
        [
            f"{info.combined_day_label}日  {info.zodiac_year}年",
            f"宜: {' '.join(info.favorable)}",
            f"忌: {' '.join(info.unfavorable)}",
        ]
    )


def format_grid(grid: Grid) -> str:
    """Plain-text rendering of a calendar grid; days with entries are starred."""
    match grid:
        case MonthGrid():
            title = f"{_calendar.month_name[grid.month]} {grid.year}"
            lines = [title, "    " + WEEKDAY_HEADER.replace(" ", "  ")]
            for row in grid.rows:
                cells = " ".join(_cell(c.day, c.current, c.has_entry) for c in row.cells)
                lines.append(f"W{row.week_of_month}  {cells}".rstrip())
            return "\n".join(lines)
        case WeekGrid():
            return "\n".join(
                f"{name[:2]} {c.date_key}{' *' if c.has_entry else ''}"
                for name, c in zip(WEEKDAY_HEADER.split(), grid.cells, strict=True)
            )
        case YearGrid():
            lines = [str(grid.year)]
            for summary in grid.months:
                marked = len(summary.days_with_entries)
                lines.append(f"{_calendar.month_abbr[summary.month]}  {marked:>2}/{summary.day_count} days recorded")
            return "\n".join(lines)
        case DayView():
            mark = " *" if grid.has_entry else ""
            return f"{grid.date_key} {WEEKDAY_HEADER.split()[grid.weekday]}{mark}\n{format_almanac(grid.almanac)}"
    raise TypeError(f"Unknown grid type: {type(grid).__name__}")


@click.command()
@click.option(
    "--view",
    "granularity",
    type=click.Choice([g.value for g in Granularity], case_sensitive=False),
    default=None,
    help="Calendar granularity (default: the last one used).",
)
@click.option("--date", "date_key", default=None, help="Anchor day (default: today).")
@click.pass_obj
def calendar(config, granularity: str | None, date_key: str | None) -> None:
    """Show the calendar around a day."""
    key = resolve_date(date_key)

    async def action(session):
        if granularity:
            session.set_granularity(Granularity(granularity.upper()))
        return session.calendar(key)

    click.echo(format_grid(run_with_session(config, action, online=False)))


@click.command()
@click.argument("date_key", required=False)
def almanac(date_key: str | None) -> None:
    """Show the almanac for DATE_KEY (default: today)."""
    try:
        info = almanac_for(resolve_date(date_key))
    except EntryValidationError as e:
        raise click.ClickException(str(e)) from e
    click.echo(format_almanac(info))
