"""Shared normalization helpers for storefront request payloads.

Request bodies come from a browser form, so values arrive loosely typed:
numbers as strings, stray whitespace, oversized text.  These helpers
coerce instead of rejecting.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, time
from datetime import timezone as dt_timezone
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def normalize_string(value: Any, max_length: int, fallback: str = "") -> str:
    """Trim *value* and cap it at *max_length*; non-strings become *fallback*."""
    if not isinstance(value, str):
        return fallback
    trimmed = value.strip()[:max_length]
    return trimmed or fallback


def parse_non_negative_int(value: Any) -> int:
    """Coerce a number or numeric string to a non-negative integer.

    Fractions are rounded half up; negatives, booleans, blanks and
    anything non-finite collapse to ``0``.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
    else:
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number + 0.5))


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into an aware ``datetime``.

    Naive datetimes are read in the current time zone, bare dates as UTC
    midnight.  Returns ``None`` when the text is not a real timestamp.
    """
    try:
        day = parse_date(value)
        if day is not None:
            return datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
        parsed = parse_datetime(value)
        if parsed is None:
            return None
    except ValueError:
        # well-formed but out of range, e.g. "2024-02-30"
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def escape_regex(text: str) -> str:
    """Escape *text* so it matches literally inside a regex lookup."""
    return re.escape(text)
