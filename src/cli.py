"""
CLI display functions for habit-grid.
"""

from src.grid_builder import GridCell, month_labels
from src.habits import Habit

# Text shades for levels 0-4
LEVEL_CHARS = [".", "░", "▒", "▓", "█"]

SUNDAY_FIRST = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
MONDAY_FIRST = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def get_milestone_message(streak_days: int) -> str | None:
    """
    Get milestone message for a given streak length.

    Args:
        streak_days: Current streak in days

    Returns:
        Milestone message string or None if no milestone
    """
    milestones = {
        7: "One week strong!",
        14: "Two weeks of consistency!",
        30: "One month champion!",
        60: "Two months unstoppable!",
        100: "100 days - legendary!",
    }
    return milestones.get(streak_days)


def format_habit_line(habit: Habit, completed_today: bool) -> str:
    """
    Format a habit for the list view.

    Returns:
        e.g. "  [x]  3  Walk around the block  (green)"
    """
    mark = "[x]" if completed_today else "[ ]"
    return f"  {mark} {habit.id:>3}  {habit.name:<30} ({habit.color.value})"


def display_habits(habits: list[Habit], today: str) -> None:
    """
    Display all habits with today's completion state.

    Args:
        habits: Habits in display order
        today: Today's date (YYYY-MM-DD)
    """
    if not habits:
        print("No habits yet. Add one with: habit-grid add <name>")
        print()
        return

    print(f"Habits for {today}:")
    for habit in habits:
        print(format_habit_line(habit, habit.is_completed(today)))
    print()


def display_grid(
    weeks: list[list[GridCell]], year: int, monday_first: bool = False
) -> None:
    """
    Display a text heatmap: one row per weekday, one column per week.

    Hidden cells (future days and days outside the year) print as blanks.

    Args:
        weeks: Grid from build_grid()
        year: Year the grid was built for
        monday_first: Whether the grid was built with Monday as day 0
    """
    day_names = MONDAY_FIRST if monday_first else SUNDAY_FIRST

    # Month header, one character per week column
    header = [" "] * len(weeks)
    for week_index, label in month_labels(weeks, year):
        for offset, char in enumerate(label):
            if week_index + offset < len(header):
                header[week_index + offset] = char

    print(f"Activity {year}:")
    print("     " + "".join(header).rstrip())

    for day_index, day_name in enumerate(day_names):
        row = ""
        for column in weeks:
            cell = column[day_index]
            row += LEVEL_CHARS[cell.level] if cell.visible else " "
        print(f"  {day_name[:2]} {row.rstrip()}")

    print()


def display_stats(stats: dict) -> None:
    """
    Display habit statistics to the console.

    Args:
        stats: Dictionary from StatsSummary.to_dict() containing:
            - total_completions: int
            - average_per_week: float
            - longest_streak: int
            - current_streak: int
    """
    total = stats["total_completions"]
    longest = stats["longest_streak"]
    current = stats["current_streak"]

    total_label = "completion" if total == 1 else "completions"
    longest_label = "day" if longest == 1 else "days"

    if current == 0:
        status = "No active streak"
    else:
        day_word = "day" if current == 1 else "days"
        status = f"Current Streak: {current} {day_word}"
        milestone = get_milestone_message(current)
        if milestone:
            status = f"{status} - {milestone}"

    print(f"🔥 {status}")
    print("📊 Statistics:")
    print(f"   Total:          {total} {total_label}")
    print(f"   Per week:       {stats['average_per_week']:.1f}")
    print(f"   Longest streak: {longest} {longest_label}")
    print()
