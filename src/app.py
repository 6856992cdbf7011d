"""
FastAPI web application for habit-grid.

Provides the dashboard pages and REST API endpoints for habits, their
heatmap grids, statistics, settings, and import/export.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from src.config import get_window_days, validate_config
from src.date_utils import InvalidDate, format_date, parse_date
from src.grid_builder import (
    MAX_YEAR,
    MIN_YEAR,
    FirstDayOfWeek,
    IntensityMode,
    build_grid,
    grid_to_dict,
)
from src.habits import ColorToken, Habit
from src.interchange import InterchangeError, export_habits, import_habits
from src.presentation import accent_color, heatmap_color, tooltip_text
from src.state import DETAIL, AppState, ShowDashboard, ShowDetail, update
from src.storage import (
    DARK_MODE_KEY,
    FIRST_DAY_KEY,
    INTENSITY_MODE_KEY,
    HabitNotFoundError,
    HabitStorage,
)
from src.streak_calculator import InvalidWindow, compute_stats

logger = logging.getLogger(__name__)

app = FastAPI(
    title="habit-grid",
    description="A GitHub-style habit tracker",
    version="0.1.0",
)

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


class HabitCreate(BaseModel):
    """Request model for creating a habit."""

    name: str = Field(..., min_length=1, max_length=200, description="Habit name")
    color: ColorToken = Field(ColorToken.GREEN, description="Palette color")
    description: str | None = Field(None, max_length=500, description="Optional description")


class ToggleRequest(BaseModel):
    """Request model for toggling a completion."""

    date: str = Field(..., description="Date to toggle (YYYY-MM-DD)")


class SettingsUpdate(BaseModel):
    """Request model for updating display preferences."""

    first_day_of_week: Literal["sunday", "monday"] | None = None
    intensity_mode: Literal["gradient", "binary"] | None = None
    dark_mode: bool | None = None


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def _check_config() -> None:
    try:
        validate_config()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Configuration error: {e}")


def _resolve_today(today: str | None) -> date:
    """Parse an optional ?today= override, defaulting to the current date."""
    if today is None:
        return date.today()
    try:
        return parse_date(today)
    except InvalidDate as e:
        logger.warning("Rejected today override: %s", e)
        raise HTTPException(status_code=400, detail=str(e))


def _load_habit(storage: HabitStorage, habit_id: int) -> Habit:
    try:
        return storage.get_habit(habit_id)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")


def _render_grid(
    habit: Habit,
    year: int,
    today: date,
    first_day: str,
    mode: str,
) -> dict:
    """
    Build a habit's grid and decorate each cell for display.

    Returns:
        grid_to_dict() output where every cell also has color, tooltip
        and completed keys.
    """
    weeks = build_grid(
        habit.completions,
        year,
        today,
        first_day_of_week=FirstDayOfWeek[first_day.upper()],
        intensity_mode=IntensityMode(mode),
    )
    grid = grid_to_dict(weeks, year)
    grid["first_day_of_week"] = first_day
    grid["intensity_mode"] = mode

    for column in grid["weeks"]:
        for cell in column:
            completed = habit.completions.get(cell["date"], False)
            cell["completed"] = completed
            cell["color"] = heatmap_color(cell["level"], habit.color)
            cell["tooltip"] = tooltip_text(cell["date"], completed) if cell["visible"] else ""
    return grid


def _habit_card(habit: Habit, today: date, preferences: dict) -> dict:
    """View model for one habit on the dashboard or detail page."""
    return {
        "habit": habit.to_dict(),
        "accent": accent_color(habit.color),
        "completed_today": habit.is_completed(today),
        "grid": _render_grid(
            habit,
            today.year,
            today,
            preferences["first_day_of_week"],
            preferences["intensity_mode"],
        ),
    }


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    """Render the dashboard page."""
    _check_config()
    storage = HabitStorage()
    storage.seed_default_habits()
    preferences = storage.get_preferences()
    today = date.today()

    state = AppState(habits=tuple(storage.get_habits()), dark_mode=preferences["dark_mode"])
    state = update(state, ShowDashboard())

    data = {
        "view": state.current_view,
        "dark_mode": state.dark_mode,
        "today": format_date(today),
        "colors": [token.value for token in ColorToken],
        "cards": [_habit_card(habit, today, preferences) for habit in state.habits],
    }
    return templates.TemplateResponse(request, "index.html", data)


@app.get("/habits/{habit_id}", response_class=HTMLResponse)
def habit_detail(request: Request, habit_id: int):
    """Render the detail page for one habit: large heatmap and statistics."""
    _check_config()
    storage = HabitStorage()
    preferences = storage.get_preferences()
    today = date.today()

    state = AppState(habits=tuple(storage.get_habits()), dark_mode=preferences["dark_mode"])
    state = update(state, ShowDetail(habit_id))
    if state.current_view != DETAIL:
        raise HTTPException(status_code=404, detail="Habit not found")

    habit = state.selected_habit
    data = {
        "view": state.current_view,
        "dark_mode": state.dark_mode,
        "today": format_date(today),
        "card": _habit_card(habit, today, preferences),
        "stats": compute_stats(habit.completions, today, get_window_days()).to_dict(),
    }
    return templates.TemplateResponse(request, "habit.html", data)


@app.get("/api/habits")
def list_habits():
    """
    Get all habits with their completion dates.

    Returns:
        JSON with habits list in display order
    """
    storage = HabitStorage()
    return {"habits": [habit.to_dict() for habit in storage.get_habits()]}


@app.post("/api/habits")
def create_habit(habit: HabitCreate):
    """
    Create a new habit.

    Args:
        habit: HabitCreate with name, color and optional description

    Returns:
        JSON with the created habit
    """
    storage = HabitStorage()
    try:
        created = storage.add_habit(habit.name, habit.color, habit.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"habit": created.to_dict()}


@app.delete("/api/habits/{habit_id}")
def delete_habit(habit_id: int):
    """
    Delete a habit and all of its completions.

    Args:
        habit_id: The habit ID

    Returns:
        JSON confirming the deletion
    """
    storage = HabitStorage()
    try:
        storage.delete_habit(habit_id)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    return {"deleted": habit_id}


@app.post("/api/habits/{habit_id}/toggle")
def toggle_habit(habit_id: int, toggle: ToggleRequest):
    """
    Toggle the completion of a habit for one day.

    Args:
        habit_id: The habit ID
        toggle: ToggleRequest with the date

    Returns:
        JSON with the date and whether it is now completed
    """
    storage = HabitStorage()
    try:
        completed = storage.toggle_completion(habit_id, toggle.date)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    except InvalidDate as e:
        logger.warning("Rejected toggle for habit %s: %s", habit_id, e)
        raise HTTPException(status_code=400, detail=str(e))

    return {"habit_id": habit_id, "date": parse_date(toggle.date).isoformat(), "completed": completed}


@app.get("/api/habits/{habit_id}/grid")
def get_grid(
    habit_id: int,
    year: int | None = Query(None, ge=MIN_YEAR, le=MAX_YEAR, description="Calendar year (default: current)"),
    first_day: Literal["sunday", "monday"] | None = Query(None, description="First day of week"),
    mode: Literal["gradient", "binary"] | None = Query(None, description="Intensity mode"),
    today: str | None = Query(None, description="Override today's date (YYYY-MM-DD)"),
):
    """
    Get the heatmap grid for one habit and year.

    Returns:
        JSON with week columns of 7 cells each, month labels, and
        per-cell level, visibility, color and tooltip
    """
    _check_config()
    storage = HabitStorage()
    habit = _load_habit(storage, habit_id)
    preferences = storage.get_preferences()
    today_date = _resolve_today(today)

    grid = _render_grid(
        habit,
        year or today_date.year,
        today_date,
        first_day or preferences["first_day_of_week"],
        mode or preferences["intensity_mode"],
    )
    return {"habit_id": habit_id, "color": habit.color.value, "grid": grid}


@app.get("/api/habits/{habit_id}/stats")
def get_habit_stats(
    habit_id: int,
    window_days: int | None = Query(None, description="Lookback window in days"),
    today: str | None = Query(None, description="Override today's date (YYYY-MM-DD)"),
):
    """
    Get completion statistics for one habit.

    Returns:
        JSON with total completions, average per week, longest streak
        and current streak over the window
    """
    _check_config()
    storage = HabitStorage()
    habit = _load_habit(storage, habit_id)
    today_date = _resolve_today(today)
    window = window_days if window_days is not None else get_window_days()

    try:
        stats = compute_stats(habit.completions, today_date, window)
    except InvalidWindow as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"habit_id": habit_id, "window_days": window, "stats": stats.to_dict()}


@app.get("/api/settings")
def get_settings():
    """
    Get display preferences.

    Returns:
        JSON with first_day_of_week, intensity_mode and dark_mode
    """
    storage = HabitStorage()
    return storage.get_preferences()


@app.post("/api/settings")
def set_settings(update_data: SettingsUpdate):
    """
    Update display preferences. Omitted fields are left unchanged.

    Returns:
        JSON with the resulting preferences
    """
    storage = HabitStorage()
    if update_data.first_day_of_week is not None:
        storage.set_setting(FIRST_DAY_KEY, update_data.first_day_of_week)
    if update_data.intensity_mode is not None:
        storage.set_setting(INTENSITY_MODE_KEY, update_data.intensity_mode)
    if update_data.dark_mode is not None:
        storage.set_setting(DARK_MODE_KEY, "true" if update_data.dark_mode else "false")
    return storage.get_preferences()


@app.post("/api/settings/theme")
def toggle_theme():
    """
    Switch between the dark and light theme.

    Returns:
        JSON with the resulting preferences
    """
    storage = HabitStorage()
    storage.toggle_theme()
    return storage.get_preferences()


@app.get("/api/export")
def export_data():
    """
    Download every habit and its completions as a JSON document.
    """
    storage = HabitStorage()
    content = export_habits(storage.get_habits())
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="habits.json"'},
    )


@app.post("/api/import")
async def import_data(request: Request):
    """
    Replace all habits with the contents of an exported JSON document.

    Returns:
        JSON with the number of habits imported
    """
    body = await request.body()
    try:
        habits = import_habits(body.decode("utf-8"))
    except (InterchangeError, InvalidDate, UnicodeDecodeError) as e:
        logger.warning("Rejected import: %s", e)
        raise HTTPException(status_code=422, detail=str(e))

    storage = HabitStorage()
    storage.replace_all(habits)
    return {"imported": len(habits)}
