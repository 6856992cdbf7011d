"""
Habit records and the completion toggle.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from src.date_utils import normalize_date


class ColorToken(str, Enum):
    """Fixed palette a habit can be drawn in."""

    GREEN = "green"
    PURPLE = "purple"
    RED = "red"
    ORANGE = "orange"
    BLUE = "blue"


@dataclass(frozen=True)
class Habit:
    """A tracked habit and its completion record."""

    id: int
    name: str
    color: ColorToken = ColorToken.GREEN
    description: str = ""
    completions: dict[str, bool] = field(default_factory=dict)

    def is_completed(self, day: str | date) -> bool:
        return self.completions.get(normalize_date(day), False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color.value,
            "description": self.description,
            "completions": sorted(self.completions),
        }


# Starter habits created on first run
DEFAULT_HABITS = [
    ("Walk around the block", "Go for a short walk to clear the mind", ColorToken.GREEN),
    ("Learn Norwegian", "Practice Norwegian language skills", ColorToken.PURPLE),
    ("Eat a piece of fruit", "Consume one serving of fruit", ColorToken.RED),
    ("Stretch for 5 minutes", "Do basic stretching exercises", ColorToken.ORANGE),
    ("Deep breathing exercise", "Practice mindful breathing", ColorToken.BLUE),
]


def default_description(name: str) -> str:
    """Description used when a habit is added without one."""
    return f"Track your progress with {name.lower()}"


def toggle_completion(completions: dict[str, bool], day: str | date) -> dict[str, bool]:
    """
    Flip the completion state of a single day.

    Args:
        completions: Completion record mapping YYYY-MM-DD to True
        day: Date to toggle

    Returns:
        A new record with the day removed if it was completed,
        or added with True if it was not. The input is not modified.

    Raises:
        InvalidDate: If day is not a valid calendar date
    """
    key = normalize_date(day)
    updated = dict(completions)
    if updated.get(key):
        del updated[key]
    else:
        updated[key] = True
    return updated


def toggle_habit(habit: Habit, day: str | date) -> Habit:
    """Return a copy of habit with the completion for day toggled."""
    return replace(habit, completions=toggle_completion(habit.completions, day))
