"""Number formatting shared by scenario rationales and reports.

ROAS renders with one decimal, currency rounds to whole units and
non-finite values render as an em dash placeholder.
"""

from __future__ import annotations

import math

NOT_AVAILABLE = "—"
DEFAULT_CURRENCY = "SEK"


def format_number(value: float, decimals: int = 1) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{value:,.{decimals}f}"


def format_currency(value: float, currency: str = DEFAULT_CURRENCY) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    # round() is banker's rounding; whole-unit display wants half-up
    whole = math.floor(value + 0.5)
    return f"{whole:,} {currency}"


def format_roas(value: float) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{value:.1f}x"


def format_percent(fraction: float) -> str:
    """Signed percent of a fraction: ``0.25 -> '+25.0%'``."""
    if not math.isfinite(fraction):
        return NOT_AVAILABLE
    percent = fraction * 100
    sign = "+" if percent >= 0 else ""
    return f"{sign}{percent:.1f}%"


def format_percent_no_sign(fraction: float) -> str:
    if not math.isfinite(fraction):
        return NOT_AVAILABLE
    return f"{fraction * 100:.1f}%"
