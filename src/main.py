"""
habit-grid: A GitHub-style habit tracker

Entry point for the command-line interface.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from src.cli import display_grid, display_habits, display_stats
from src.config import get_window_days, setup_logging, validate_config
from src.date_utils import format_date, parse_date
from src.grid_builder import FirstDayOfWeek, IntensityMode, build_grid
from src.habits import ColorToken
from src.interchange import export_habits, import_habits
from src.state import DETAIL, AppState, ShowDetail, update
from src.storage import HabitNotFoundError, HabitStorage
from src.streak_calculator import compute_stats

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="habit-grid",
        description="Track daily habits with a GitHub-style heatmap.",
    )
    parser.add_argument("--db", help="Path to the SQLite database")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List habits and today's progress")

    add = commands.add_parser("add", help="Add a habit")
    add.add_argument("name")
    add.add_argument("--color", choices=[c.value for c in ColorToken], default="green")
    add.add_argument("--description")

    delete = commands.add_parser("delete", help="Delete a habit and its history")
    delete.add_argument("habit_id", type=int)

    toggle = commands.add_parser("toggle", help="Mark or unmark a day")
    toggle.add_argument("habit_id", type=int)
    toggle.add_argument("date", nargs="?", help="YYYY-MM-DD (default: today)")

    show = commands.add_parser("show", help="Show a habit's heatmap and statistics")
    show.add_argument("habit_id", type=int)
    show.add_argument("--year", type=int)
    show.add_argument("--today", help="Override today's date (YYYY-MM-DD)")
    show.add_argument("--first-day", choices=["sunday", "monday"])
    show.add_argument("--mode", choices=["gradient", "binary"])
    show.add_argument("--window", type=int, help="Stats window in days")

    export = commands.add_parser("export", help="Export all habits as JSON")
    export.add_argument("file", nargs="?", help="Output file (default: stdout)")

    import_cmd = commands.add_parser("import", help="Replace all habits from a JSON export")
    import_cmd.add_argument("file")

    serve = commands.add_parser("serve", help="Run the web dashboard")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _show(storage: HabitStorage, args: argparse.Namespace) -> int:
    preferences = storage.get_preferences()
    today = parse_date(args.today) if args.today else date.today()
    first_day = args.first_day or preferences["first_day_of_week"]
    mode = args.mode or preferences["intensity_mode"]
    window = args.window if args.window is not None else get_window_days()

    state = update(AppState(habits=tuple(storage.get_habits())), ShowDetail(args.habit_id))
    if state.current_view != DETAIL:
        raise HabitNotFoundError(f"Habit {args.habit_id} not found")
    habit = state.selected_habit

    year = args.year or today.year
    weeks = build_grid(
        habit.completions,
        year,
        today,
        first_day_of_week=FirstDayOfWeek[first_day.upper()],
        intensity_mode=IntensityMode(mode),
    )

    print(f"{habit.name} ({habit.color.value})")
    print(f"   {habit.description}")
    print()
    display_grid(weeks, year, monday_first=first_day == "monday")
    display_stats(compute_stats(habit.completions, today, window).to_dict())
    return 0


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command against the configured storage."""
    storage = HabitStorage(args.db) if args.db else HabitStorage()

    if args.command == "list":
        storage.seed_default_habits()
        display_habits(storage.get_habits(), format_date(date.today()))

    elif args.command == "add":
        habit = storage.add_habit(args.name, args.color, args.description)
        print(f"Added habit {habit.id}: {habit.name}")

    elif args.command == "delete":
        storage.delete_habit(args.habit_id)
        print(f"Deleted habit {args.habit_id}")

    elif args.command == "toggle":
        day = args.date or format_date(date.today())
        completed = storage.toggle_completion(args.habit_id, day)
        status = "completed" if completed else "cleared"
        print(f"Habit {args.habit_id} {status} for {parse_date(day).isoformat()}")

    elif args.command == "show":
        return _show(storage, args)

    elif args.command == "export":
        content = export_habits(storage.get_habits())
        if args.file:
            Path(args.file).write_text(content + "\n", encoding="utf-8")
            print(f"Exported to {args.file}")
        else:
            print(content)

    elif args.command == "import":
        habits = import_habits(Path(args.file).read_text(encoding="utf-8"))
        storage.replace_all(habits)
        print(f"Imported {len(habits)} habits")

    elif args.command == "serve":
        import uvicorn

        uvicorn.run("src.app:app", host=args.host, port=args.port)

    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Validate configuration
    try:
        validate_config()
    except ValueError as e:
        print(f"\nConfiguration Error:\n{e}")
        return 1

    setup_logging()

    try:
        return run(args)
    except (HabitNotFoundError, ValueError) as e:
        # Includes InvalidDate, InvalidYear, InvalidWindow and InterchangeError
        print(f"Error: {e}")
        return 1
    except OSError as e:
        logger.error("File error: %s", e)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
