"""
JSON import and export of the whole habit collection.
"""

import json

from pydantic import BaseModel, Field, ValidationError

from src.date_utils import normalize_date
from src.habits import ColorToken, Habit

FORMAT_VERSION = 1


class InterchangeError(ValueError):
    """Raised when an import document cannot be read."""

    pass


class HabitDocument(BaseModel):
    """One habit in the interchange document."""

    id: int
    name: str = Field(..., min_length=1)
    color: ColorToken = ColorToken.GREEN
    description: str = ""
    completions: list[str] = Field(default_factory=list)


class ExportDocument(BaseModel):
    """Top-level interchange document."""

    version: int = FORMAT_VERSION
    habits: list[HabitDocument] = Field(default_factory=list)


def export_habits(habits: list[Habit]) -> str:
    """
    Serialize habits to a JSON document.

    Habit order is preserved; each habit's completions are written as a
    sorted list of YYYY-MM-DD strings.
    """
    document = {
        "version": FORMAT_VERSION,
        "habits": [habit.to_dict() for habit in habits],
    }
    return json.dumps(document, indent=2)


def import_habits(text: str) -> list[Habit]:
    """
    Parse a JSON document produced by export_habits().

    Args:
        text: JSON document

    Returns:
        Habits in document order

    Raises:
        InterchangeError: If the document is not valid JSON, has the wrong
            shape, or repeats a habit id
        InvalidDate: If a completion is not a valid YYYY-MM-DD date
    """
    try:
        document = ExportDocument.model_validate_json(text)
    except ValidationError as e:
        raise InterchangeError(f"Invalid habit export: {e}") from e

    if document.version != FORMAT_VERSION:
        raise InterchangeError(f"Unsupported export version: {document.version}")

    habits = []
    seen_ids = set()
    for item in document.habits:
        if item.id in seen_ids:
            raise InterchangeError(f"Duplicate habit id: {item.id}")
        seen_ids.add(item.id)

        habits.append(
            Habit(
                id=item.id,
                name=item.name,
                color=item.color,
                description=item.description,
                completions={normalize_date(day): True for day in item.completions},
            )
        )
    return habits
