"""
Application state and the commands that change it.

The UI never mutates state directly. Each user action becomes a command
object, and update() returns the next state.
"""

from dataclasses import dataclass, replace
from datetime import date

from src.habits import ColorToken, Habit, default_description, toggle_habit

DASHBOARD = "dashboard"
DETAIL = "detail"


@dataclass(frozen=True)
class AppState:
    """Everything the presentation layer needs to render a screen."""

    habits: tuple[Habit, ...] = ()
    current_view: str = DASHBOARD
    selected_habit_id: int | None = None
    dark_mode: bool = True

    def find_habit(self, habit_id: int) -> Habit | None:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        return None

    @property
    def selected_habit(self) -> Habit | None:
        if self.selected_habit_id is None:
            return None
        return self.find_habit(self.selected_habit_id)


@dataclass(frozen=True)
class ToggleCompletion:
    habit_id: int
    date: str | date


@dataclass(frozen=True)
class AddHabit:
    habit_id: int
    name: str
    color: ColorToken = ColorToken.GREEN
    description: str | None = None


@dataclass(frozen=True)
class DeleteHabit:
    habit_id: int


@dataclass(frozen=True)
class ShowDetail:
    habit_id: int


@dataclass(frozen=True)
class ShowDashboard:
    pass


@dataclass(frozen=True)
class ToggleTheme:
    pass


Command = ToggleCompletion | AddHabit | DeleteHabit | ShowDetail | ShowDashboard | ToggleTheme


def update(state: AppState, command: Command) -> AppState:
    """
    Apply a command to the application state.

    Args:
        state: Current state (left untouched)
        command: One of the command objects defined in this module

    Returns:
        The next state. Commands that reference an unknown habit
        return the state unchanged.

    Raises:
        InvalidDate: If a ToggleCompletion carries a malformed date
        TypeError: If command is not a known command type
    """
    if isinstance(command, ToggleCompletion):
        if state.find_habit(command.habit_id) is None:
            return state
        habits = tuple(
            toggle_habit(habit, command.date) if habit.id == command.habit_id else habit
            for habit in state.habits
        )
        return replace(state, habits=habits)

    if isinstance(command, AddHabit):
        name = command.name.strip()
        if not name:
            return state
        habit = Habit(
            id=command.habit_id,
            name=name,
            color=ColorToken(command.color),
            description=command.description or default_description(name),
        )
        return replace(state, habits=state.habits + (habit,))

    if isinstance(command, DeleteHabit):
        habits = tuple(h for h in state.habits if h.id != command.habit_id)
        if state.selected_habit_id == command.habit_id:
            return replace(state, habits=habits, current_view=DASHBOARD, selected_habit_id=None)
        return replace(state, habits=habits)

    if isinstance(command, ShowDetail):
        if state.find_habit(command.habit_id) is None:
            return state
        return replace(state, current_view=DETAIL, selected_habit_id=command.habit_id)

    if isinstance(command, ShowDashboard):
        return replace(state, current_view=DASHBOARD, selected_habit_id=None)

    if isinstance(command, ToggleTheme):
        return replace(state, dark_mode=not state.dark_mode)

    raise TypeError(f"Unknown command: {command!r}")
