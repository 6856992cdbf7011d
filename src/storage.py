"""
SQLite-based storage for habits and their completions.

Provides persistent storage for the habit collection, the per-day completion
records, and user settings.
"""

import logging
import sqlite3
import threading
from datetime import date
from pathlib import Path

from src import config
from src.date_utils import normalize_date
from src.habits import DEFAULT_HABITS, ColorToken, Habit
from src.state import (
    AddHabit,
    AppState,
    Command,
    DeleteHabit,
    ToggleCompletion,
    ToggleTheme,
    update,
)

logger = logging.getLogger(__name__)

FIRST_DAY_KEY = "first_day_of_week"
INTENSITY_MODE_KEY = "intensity_mode"
DARK_MODE_KEY = "dark_mode"
SEEDED_KEY = "seeded"


class HabitNotFoundError(LookupError):
    """Raised when a habit id does not exist in storage."""

    pass


def _get_default_db_path() -> Path:
    """Get the default database path."""
    if config.DB_PATH:
        return Path(config.DB_PATH)
    return Path.home() / ".habit-grid" / "habits.db"


class HabitStorage:
    """SQLite-based storage for habits."""

    # One lock per (database, habit id), shared by every HabitStorage instance
    _habit_locks: dict[tuple[str, int], threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the habit storage.

        Args:
            db_path: Path to the SQLite database file.
                     Defaults to ~/.habit-grid/habits.db
        """
        if db_path is None:
            db_path = _get_default_db_path()
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS habits (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    color TEXT NOT NULL DEFAULT 'green',
                    position INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS completions (
                    habit_id INTEGER NOT NULL REFERENCES habits(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (habit_id, date)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_completions_date ON completions(date)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def _lock_for(self, habit_id: int) -> threading.Lock:
        key = (str(self.db_path.resolve()), habit_id)
        with self._locks_guard:
            if key not in self._habit_locks:
                self._habit_locks[key] = threading.Lock()
            return self._habit_locks[key]

    def _release_lock(self, habit_id: int) -> None:
        key = (str(self.db_path.resolve()), habit_id)
        with self._locks_guard:
            self._habit_locks.pop(key, None)

    def get_habits(self) -> list[Habit]:
        """
        Retrieve all habits with their completions.

        Returns:
            List of habits in display order.
        """
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                """
                SELECT id, name, description, color
                FROM habits
                ORDER BY position, id
                """
            ).fetchall()
            completion_rows = conn.execute(
                "SELECT habit_id, date FROM completions ORDER BY date"
            ).fetchall()

        completions_by_habit: dict[int, dict[str, bool]] = {}
        for row in completion_rows:
            completions_by_habit.setdefault(row["habit_id"], {})[row["date"]] = True

        return [
            self._row_to_habit(row, completions_by_habit.get(row["id"], {}))
            for row in rows
        ]

    def get_habit(self, habit_id: int) -> Habit:
        """
        Retrieve a single habit.

        Raises:
            HabitNotFoundError: If no habit has this id
        """
        with self._connect() as conn:
            return self._load_habit(conn, habit_id)

    def _load_habit(self, conn: sqlite3.Connection, habit_id: int) -> Habit:
        conn.row_factory = sqlite3.Row
        row = conn.execute(
            "SELECT id, name, description, color FROM habits WHERE id = ?",
            (habit_id,),
        ).fetchone()
        if row is None:
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        dates = conn.execute(
            "SELECT date FROM completions WHERE habit_id = ? ORDER BY date",
            (habit_id,),
        ).fetchall()
        return self._row_to_habit(row, {d["date"]: True for d in dates})

    @staticmethod
    def _row_to_habit(row: sqlite3.Row, completions: dict[str, bool]) -> Habit:
        return Habit(
            id=row["id"],
            name=row["name"],
            color=ColorToken(row["color"]),
            description=row["description"],
            completions=completions,
        )

    def _apply(self, conn: sqlite3.Connection, state: AppState, command: Command) -> AppState:
        """
        Run a command through update() and write the changed habits.

        Habits missing from the next state are deleted, new or modified
        ones are upserted. The caller commits.
        """
        next_state = update(state, command)

        kept = {habit.id for habit in next_state.habits}
        for habit in state.habits:
            if habit.id not in kept:
                conn.execute("DELETE FROM habits WHERE id = ?", (habit.id,))
        for habit in next_state.habits:
            if habit not in state.habits:
                self._write_habit(conn, habit, position=None)

        return next_state

    def add_habit(
        self,
        name: str,
        color: ColorToken | str = ColorToken.GREEN,
        description: str | None = None,
    ) -> Habit:
        """
        Create a new habit with an empty completion record.

        Args:
            name: Habit name (must not be blank)
            color: Palette color token
            description: Optional description; a default is derived from the name

        Returns:
            The created habit
        """
        name = name.strip()
        if not name:
            raise ValueError("Habit name must not be empty")
        color = ColorToken(color)

        with self._connect() as conn:
            # Take the write lock before reserving the next id
            conn.execute("BEGIN IMMEDIATE")
            habit_id = conn.execute(
                """
                SELECT COALESCE(
                    (SELECT seq FROM sqlite_sequence WHERE name = 'habits'), 0
                ) + 1
                """
            ).fetchone()[0]
            state = self._apply(conn, AppState(), AddHabit(habit_id, name, color, description))
            conn.commit()

        habit = state.habits[0]
        logger.info("Added habit %s (%s)", habit.id, habit.name)
        return habit

    def delete_habit(self, habit_id: int) -> None:
        """
        Delete a habit and all of its completions.

        Raises:
            HabitNotFoundError: If no habit has this id
        """
        try:
            with self._lock_for(habit_id), self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                state = AppState(habits=(self._load_habit(conn, habit_id),))
                self._apply(conn, state, DeleteHabit(habit_id))
                conn.commit()
        finally:
            self._release_lock(habit_id)

        logger.info("Deleted habit %s", habit_id)

    def toggle_completion(self, habit_id: int, day: str | date) -> bool:
        """
        Toggle a habit's completion for one day.

        Toggles on the same habit are serialized so two concurrent requests
        for the same day never lose an update.

        Args:
            habit_id: The habit ID
            day: Date to toggle

        Returns:
            True if the day is now completed, False if it was cleared

        Raises:
            HabitNotFoundError: If no habit has this id
            InvalidDate: If day is not a valid calendar date
        """
        key = normalize_date(day)

        try:
            with self._lock_for(habit_id), self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                state = AppState(habits=(self._load_habit(conn, habit_id),))
                state = self._apply(conn, state, ToggleCompletion(habit_id, key))
                conn.commit()
        except HabitNotFoundError:
            self._release_lock(habit_id)
            raise

        completed = state.habits[0].is_completed(key)
        logger.debug("Toggled habit %s on %s -> %s", habit_id, key, completed)
        return completed

    def replace_all(self, habits: list[Habit]) -> None:
        """
        Replace the whole collection, keeping the given order.

        Used by import; existing habits not in the list are deleted.
        """
        with self._connect() as conn:
            conn.execute("DELETE FROM habits")
            for position, habit in enumerate(habits):
                self._write_habit(conn, habit, position=position)
            conn.commit()

        logger.info("Imported %d habits", len(habits))

    @staticmethod
    def _write_habit(conn: sqlite3.Connection, habit: Habit, position: int | None) -> None:
        if position is None:
            row = conn.execute(
                "SELECT position FROM habits WHERE id = ?", (habit.id,)
            ).fetchone()
            if row is not None:
                position = row[0]
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM habits"
                ).fetchone()[0]

        conn.execute(
            """
            INSERT INTO habits (id, name, description, color, position)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                color = excluded.color,
                position = excluded.position
            """,
            (habit.id, habit.name, habit.description, ColorToken(habit.color).value, position),
        )
        conn.execute("DELETE FROM completions WHERE habit_id = ?", (habit.id,))
        conn.executemany(
            "INSERT INTO completions (habit_id, date) VALUES (?, ?)",
            [(habit.id, day) for day, done in habit.completions.items() if done],
        )

    def seed_default_habits(self) -> int:
        """
        Insert the starter habits on first run.

        Seeding happens once per database: if the user later deletes every
        habit, the starters are not recreated.

        Returns:
            Number of habits created
        """
        if self.get_setting(SEEDED_KEY) == "true":
            return 0

        with self._connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM habits").fetchone()[0]

        created = 0
        if not count:
            for name, description, color in DEFAULT_HABITS:
                self.add_habit(name, color, description)
            created = len(DEFAULT_HABITS)

        self.set_setting(SEEDED_KEY, "true")
        return created

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        """
        Get a setting value by key.

        Args:
            key: The setting key
            default: Default value if key doesn't exist

        Returns:
            The setting value or default
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?",
                (key,),
            ).fetchone()
        return row[0] if row else default

    def set_setting(self, key: str, value: str) -> None:
        """
        Set a setting value (upserts).

        Args:
            key: The setting key
            value: The value to store
        """
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value),
            )
            conn.commit()

    def get_preferences(self) -> dict:
        """
        Display preferences, falling back to the environment defaults.

        Returns:
            Dictionary with first_day_of_week ("sunday"/"monday"),
            intensity_mode ("gradient"/"binary") and dark_mode (bool)
        """
        return {
            "first_day_of_week": self.get_setting(FIRST_DAY_KEY, config.FIRST_DAY_OF_WEEK),
            "intensity_mode": self.get_setting(INTENSITY_MODE_KEY, config.INTENSITY_MODE),
            "dark_mode": self.get_setting(DARK_MODE_KEY, "true") == "true",
        }

    def toggle_theme(self) -> bool:
        """
        Flip between the dark and light theme.

        Returns:
            True if dark mode is now on
        """
        state = AppState(dark_mode=self.get_preferences()["dark_mode"])
        state = update(state, ToggleTheme())
        self.set_setting(DARK_MODE_KEY, "true" if state.dark_mode else "false")
        return state.dark_mode
