"""
Grid builder for the yearly habit heatmap.

Lays out a calendar year as week columns of seven day cells, anchored on the
configured first day of the week, and assigns each visible cell an intensity
level from 0 to 4 for a GitHub-style contribution graph.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from src.date_utils import format_date, parse_date, sunday_index, week_start

MAX_LEVEL = 4

# Outside this range the first or last week column leaves the datetime range
MIN_YEAR = 2
MAX_YEAR = 9998

MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class InvalidYear(ValueError):
    """Raised when a grid year is outside the supported calendar range."""

    pass


class FirstDayOfWeek(Enum):
    """Which weekday starts each grid column (value is its Sunday-based index)."""

    SUNDAY = 0
    MONDAY = 1


class IntensityMode(Enum):
    """How a completed cell's intensity level is derived."""

    GRADIENT = "gradient"  # 1 + completions in the Sunday-aligned week, capped at 4
    BINARY = "binary"  # 1 for any completed day


@dataclass(frozen=True)
class GridCell:
    """A single day in the heatmap grid."""

    date: date
    week_index: int
    day_index: int
    level: int
    visible: bool

    def to_dict(self) -> dict:
        return {
            "date": format_date(self.date),
            "week": self.week_index,
            "day": self.day_index,
            "level": self.level,
            "visible": self.visible,
        }


def anchor_date(year: int, first_day_of_week: FirstDayOfWeek) -> date:
    """First occurrence of the first day of week on or before January 1."""
    return week_start(date(year, 1, 1), first_day_of_week.value)


def week_count(year: int, first_day_of_week: FirstDayOfWeek) -> int:
    """Number of week columns needed to reach December 31 from the anchor."""
    anchor = anchor_date(year, first_day_of_week)
    days_to_end = (date(year, 12, 31) - anchor).days
    return math.ceil((days_to_end + 1) / 7)


def build_grid(
    completions: dict[str, bool],
    year: int,
    reference_date: str | date,
    first_day_of_week: FirstDayOfWeek = FirstDayOfWeek.SUNDAY,
    intensity_mode: IntensityMode = IntensityMode.GRADIENT,
) -> list[list[GridCell]]:
    """
    Build the heatmap grid for one calendar year.

    Args:
        completions: Completion record mapping YYYY-MM-DD to True
        year: Calendar year to lay out
        reference_date: "Today"; later cells are hidden
        first_day_of_week: Weekday at day index 0 of every column
        intensity_mode: Level policy for completed cells

    Returns:
        List of week columns, each a list of exactly 7 GridCells.
        Cells after reference_date or outside the year are present but
        not visible, and always carry level 0.

    Raises:
        InvalidDate: If reference_date or any completion key is malformed
        InvalidYear: If year is outside MIN_YEAR..MAX_YEAR
    """
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidYear(f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")

    today = parse_date(reference_date)
    completed = _completed_dates(completions)

    anchor = anchor_date(year, first_day_of_week)
    weeks = []

    for week_index in range(week_count(year, first_day_of_week)):
        column = []
        for day_index in range(7):
            cell_date = anchor + timedelta(days=week_index * 7 + day_index)
            visible = cell_date <= today and cell_date.year == year
            level = 0
            if visible:
                level = _calculate_level(cell_date, completed, intensity_mode)

            column.append(
                GridCell(
                    date=cell_date,
                    week_index=week_index,
                    day_index=day_index,
                    level=level,
                    visible=visible,
                )
            )
        weeks.append(column)

    return weeks


def _completed_dates(completions: dict[str, bool]) -> set[date]:
    """Parse the truthy keys of a completion record into dates."""
    return {parse_date(key) for key, done in completions.items() if done}


def _calculate_level(
    cell_date: date, completed: set[date], intensity_mode: IntensityMode
) -> int:
    """
    Calculate intensity level for a single cell.

    Returns:
        0 if the day is not completed. Otherwise 1 in BINARY mode, or in
        GRADIENT mode 1 plus the number of completed days in the cell's
        Sunday..Saturday week, capped at 4. That week can reach into the
        previous year for the first column.
    """
    if cell_date not in completed:
        return 0

    if intensity_mode is IntensityMode.BINARY:
        return 1

    sunday = cell_date - timedelta(days=sunday_index(cell_date))
    in_week = sum(
        1 for offset in range(7) if sunday + timedelta(days=offset) in completed
    )
    return min(MAX_LEVEL, 1 + in_week)


def month_labels(weeks: list[list[GridCell]], year: int) -> list[tuple[int, str]]:
    """
    Column positions for month labels above the grid.

    Args:
        weeks: Grid from build_grid()
        year: Year the grid was built for

    Returns:
        (week_index, month abbreviation) for the column holding the 1st of
        each month, in calendar order.
    """
    firsts = {date(year, month, 1): MONTH_NAMES[month - 1] for month in range(1, 13)}
    labels = []
    for column in weeks:
        for cell in column:
            if cell.date in firsts:
                labels.append((cell.week_index, firsts[cell.date]))
    return labels


def grid_to_dict(weeks: list[list[GridCell]], year: int) -> dict:
    """Serialize a grid for JSON responses and templates."""
    return {
        "year": year,
        "week_count": len(weeks),
        "weeks": [[cell.to_dict() for cell in column] for column in weeks],
        "months": [
            {"week": week_index, "label": label}
            for week_index, label in month_labels(weeks, year)
        ],
    }
