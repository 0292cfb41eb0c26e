"""Text helpers shared by the reporters."""

from __future__ import annotations

ICON_POSITIVE = "💚"
ICON_NEGATIVE = "💔"


def format_percentage(percentage: float) -> str:
    """Format with at most two decimals and no trailing zeros (``33.33%``, ``25%``)."""
    return f"{round(percentage, 2):g}%"
