"""Display strings shared by the score, advisor, budget and report passes."""

from __future__ import annotations

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def format_size(size: int | float) -> str:
    """Decimal (file-style) byte count, e.g. ``"1.2 MB"``."""
    size = max(0, size)
    if size < 1000:
        return f"{int(size)} bytes"
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1000
        if value < 1000 or unit == _SIZE_UNITS[-1]:
            return f"{value:.0f} {unit}" if unit == "KB" else f"{value:.1f} {unit}"
    raise AssertionError("unreachable")


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.2f} s"


def percent(part: float, whole: float) -> int:
    if whole <= 0:
        return 0
    return int(part / whole * 100)
