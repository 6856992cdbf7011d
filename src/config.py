"""
Configuration management for habit-grid.

Loads settings from environment variables (and a .env file).
"""

import logging
import os

from dotenv import load_dotenv

# Load .env file from project root
load_dotenv()

DB_PATH = os.getenv("HABIT_GRID_DB_PATH")
FIRST_DAY_OF_WEEK = os.getenv("HABIT_GRID_FIRST_DAY", "sunday").lower()
INTENSITY_MODE = os.getenv("HABIT_GRID_INTENSITY", "gradient").lower()
WINDOW_DAYS = os.getenv("HABIT_GRID_WINDOW_DAYS", "365")
LOG_LEVEL = os.getenv("HABIT_GRID_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def validate_config():
    """Validate that configuration values are usable."""
    problems = []

    if FIRST_DAY_OF_WEEK not in ("sunday", "monday"):
        problems.append(f"HABIT_GRID_FIRST_DAY must be 'sunday' or 'monday', got {FIRST_DAY_OF_WEEK!r}")

    if INTENSITY_MODE not in ("gradient", "binary"):
        problems.append(f"HABIT_GRID_INTENSITY must be 'gradient' or 'binary', got {INTENSITY_MODE!r}")

    if not WINDOW_DAYS.isdigit() or int(WINDOW_DAYS) < 1:
        problems.append(f"HABIT_GRID_WINDOW_DAYS must be a positive integer, got {WINDOW_DAYS!r}")

    if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        problems.append(f"HABIT_GRID_LOG_LEVEL is not a logging level: {LOG_LEVEL!r}")

    if problems:
        raise ValueError(
            "Invalid configuration:\n  " + "\n  ".join(problems) + "\n"
            "Check your .env file or environment variables."
        )


def get_window_days() -> int:
    """Default stats window in days."""
    return int(WINDOW_DAYS)


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stream handler."""
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
