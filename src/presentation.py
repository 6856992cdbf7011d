"""
Color and text helpers for rendering the heatmap.
"""

from datetime import date

from src.date_utils import parse_date
from src.habits import ColorToken

EMPTY_COLOR = "var(--heatmap-empty)"

# GitHub-style color progression, one entry per level 1-4
PALETTES = {
    ColorToken.GREEN: ["#0e4429", "#006d32", "#26a641", "#39d353"],
    ColorToken.PURPLE: ["#1a103d", "#4c2889", "#7c3aed", "#a371f7"],
    ColorToken.RED: ["#3d1216", "#7d1814", "#b91c1c", "#f85149"],
    ColorToken.ORANGE: ["#3d1e00", "#7c2d12", "#ea580c", "#ffa657"],
    ColorToken.BLUE: ["#0c2a6d", "#1e40af", "#2563eb", "#58a6ff"],
}


def heatmap_color(level: int, color: ColorToken | str) -> str:
    """
    Map an intensity level to a CSS color for a habit's palette.

    Args:
        level: Intensity level 0-4
        color: Habit color token

    Returns:
        EMPTY_COLOR for level 0, otherwise the palette entry for the level.
        Unknown tokens fall back to green.
    """
    if level <= 0:
        return EMPTY_COLOR

    try:
        palette = PALETTES[ColorToken(color)]
    except ValueError:
        palette = PALETTES[ColorToken.GREEN]
    return palette[min(level, len(palette)) - 1]


def accent_color(color: ColorToken | str) -> str:
    """Brightest palette color, used for the habit card accent."""
    return heatmap_color(4, color)


def tooltip_text(day: str | date, completed: bool) -> str:
    """
    Tooltip for a grid cell, e.g. "Monday, January 1, 2024 - Completed".
    """
    value = parse_date(day)
    formatted = f"{value:%A}, {value:%B} {value.day}, {value.year}"
    status = "Completed" if completed else "Not completed"
    return f"{formatted} - {status}"
