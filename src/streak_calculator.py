"""
Calculate habit statistics and streaks from a completion record.
"""

import math
from dataclasses import asdict, dataclass
from datetime import date, timedelta

from src.date_utils import parse_date

DEFAULT_WINDOW_DAYS = 365


class InvalidWindow(ValueError):
    """Raised when the lookback window is shorter than one day."""

    pass


@dataclass(frozen=True)
class StatsSummary:
    """Statistics for one habit over a rolling window."""

    total_completions: int
    average_per_week: float
    longest_streak: int
    current_streak: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def compute_stats(
    completions: dict[str, bool],
    reference_date: str | date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> StatsSummary:
    """
    Calculate completion statistics over a rolling window.

    Args:
        completions: Completion record mapping YYYY-MM-DD to True
        reference_date: Last day of the window ("today")
        window_days: Days to look back from reference_date. The window is
            [reference_date - window_days, reference_date], both inclusive.

    Returns:
        StatsSummary with:
        - total_completions: Completed days in the window
        - average_per_week: total / ceil(window_days / 7)
        - longest_streak: Longest run of consecutive completed days
        - current_streak: Run ending today or yesterday (grace period)

    Raises:
        InvalidWindow: If window_days < 1
        InvalidDate: If reference_date or a completion key is malformed
    """
    if window_days < 1:
        raise InvalidWindow(f"window_days must be at least 1, got {window_days}")

    today = parse_date(reference_date)
    window_start = today - timedelta(days=window_days)

    in_window = sorted(
        day
        for day in (parse_date(key) for key, done in completions.items() if done)
        if window_start <= day <= today
    )

    total = len(in_window)
    weeks = math.ceil(window_days / 7)

    return StatsSummary(
        total_completions=total,
        average_per_week=total / weeks,
        longest_streak=_calculate_longest_streak(in_window),
        current_streak=_calculate_current_streak(in_window, today),
    )


def _calculate_longest_streak(sorted_dates: list[date]) -> int:
    """
    Calculate the longest streak in a list of dates.

    Args:
        sorted_dates: Unique dates in ascending order

    Returns:
        Longest streak count (0 for no dates)
    """
    if not sorted_dates:
        return 0

    longest = 1
    current_streak = 1

    for i in range(1, len(sorted_dates)):
        if sorted_dates[i] - sorted_dates[i - 1] == timedelta(days=1):
            current_streak += 1
            longest = max(longest, current_streak)
        else:
            current_streak = 1

    return longest


def _calculate_current_streak(sorted_dates: list[date], today: date) -> int:
    """
    Calculate the streak that is still alive on the given day.

    The streak starts from today or yesterday (grace period) and counts
    consecutive days backwards.

    Args:
        sorted_dates: Unique dates in ascending order, none after today
        today: Reference date

    Returns:
        Current streak count
    """
    if not sorted_dates:
        return 0

    most_recent = sorted_dates[-1]
    if most_recent not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    current_date = most_recent

    for day in reversed(sorted_dates[:-1]):
        if day == current_date - timedelta(days=1):
            streak += 1
            current_date = day
        else:
            # Gap found, streak ends
            break

    return streak
