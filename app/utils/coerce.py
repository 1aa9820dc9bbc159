"""Helpers for reading untrusted JSON returned by the completion provider."""

import math
from datetime import date, datetime


def as_float(value, default=0.0):
    """Finite float or ``default``; booleans, NaN and infinities are rejected."""
    if isinstance(value, bool):
        return default
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return f if math.isfinite(f) else default


def clamp(value, low, high):
    return max(low, min(high, value))


def as_str_list(value, limit=None):
    if not isinstance(value, list):
        return []
    out = [v.strip() for v in value if isinstance(v, str) and v.strip()]
    return out[:limit] if limit else out


def as_choice(value, choices, default):
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    return default


def as_date(value):
    """Parse an ISO date or datetime string; ``None`` when unparsable."""
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace('Z', '+00:00')).date()
    except ValueError:
        return None
