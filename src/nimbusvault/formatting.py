"""Human-readable sizes and timestamps for listings and vault tables."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(size: Optional[Union[int, str]]) -> str:
    """Render a byte count with one decimal, e.g. ``1.5 KB``.

    Zero, missing and non-numeric sizes render as ``N/A``.
    """
    if not size:
        return "N/A"
    try:
        value = float(int(size))
    except (TypeError, ValueError):
        return "N/A"

    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def format_timestamp(value: Optional[datetime]) -> str:
    """Render as ``Oct 17, 2026, 05:21 PM``; missing values as ``N/A``."""
    if value is None:
        return "N/A"
    return value.strftime("%b %d, %Y, %I:%M %p")
