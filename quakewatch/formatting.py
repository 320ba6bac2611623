"""Number, magnitude and distance formatting for reports.

Distances and depths are shown in miles first with kilometres in
parentheses, for Bay Area readers. Missing values (None, NaN, inf) render
as an em-dash ('—').

Usage::

    from quakewatch.formatting import fmt, fmt_num, format_distance

    fmt(3.14159, 2)          # '3.14'
    fmt_num(12345)           # '12,345'
    fmt_mag(4.25)            # 'M4.2'
    format_distance(10)      # '6.2 mi (10.0 km)'
    format_depth(8.1)        # '5.0 mi (8.1 km) deep'
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

_DASH = "—"

KM_TO_MILES = 0.621371
MILES_TO_KM = 1.60934

Numeric = Optional[Union[int, float]]


def _is_missing(x: Numeric) -> bool:
    if x is None:
        return True
    if isinstance(x, float) and (math.isnan(x) or math.isinf(x)):
        return True
    return False


def fmt(x: Numeric, decimals: int = 1) -> str:
    """Format a number with fixed decimal places.

    Examples:
        >>> fmt(1.23456, 3)
        '1.235'
        >>> fmt(None)
        '—'
    """
    if _is_missing(x):
        return _DASH
    return f"{x:.{decimals}f}"


def fmt_num(x: Numeric) -> str:
    """Comma-separated number; integers without decimals, floats with one."""
    if _is_missing(x):
        return _DASH
    if isinstance(x, float):
        return f"{x:,.1f}"
    return f"{x:,}"


def fmt_pct(x: Numeric, decimals: int = 1) -> str:
    """Format a value already on the 0-100 scale as a percentage."""
    if _is_missing(x):
        return _DASH
    return f"{x:.{decimals}f}%"


def fmt_mag(magnitude: Numeric) -> str:
    if _is_missing(magnitude):
        return _DASH
    return f"M{magnitude:.1f}"


def fmt_time(ms: Optional[int]) -> str:
    """Epoch milliseconds as 'YYYY-MM-DD HH:MM UTC'."""
    if ms is None:
        return _DASH
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


def miles_to_km(miles: float) -> float:
    return miles * MILES_TO_KM


def format_distance(km: Numeric, decimals: int = 1) -> str:
    """'6.2 mi (10.0 km)' for 10 km."""
    if _is_missing(km):
        return _DASH
    return f"{km_to_miles(km):.{decimals}f} mi ({km:.{decimals}f} km)"


def format_depth(km: Numeric, decimals: int = 1) -> str:
    if _is_missing(km):
        return _DASH
    return f"{format_distance(km, decimals)} deep"


def format_radius(km: Numeric) -> str:
    """Radius rounded to whole units, except below one unit.

    Examples:
        >>> format_radius(10)
        '6 mi (10 km)'
        >>> format_radius(0.5)
        '0.3 mi (0.5 km)'
    """
    if _is_missing(km):
        return _DASH
    miles = km_to_miles(km)
    miles_str = f"{miles:.1f}" if miles < 1 else str(round(miles))
    km_str = f"{km:.1f}" if km < 1 else str(round(km))
    return f"{miles_str} mi ({km_str} km)"
