"""Date helpers for point-in-time filtering.

eCFR dates are ``YYYY-MM-DD`` strings. These helpers turn them into
comparable ``datetime.date`` values and answer closed-interval questions,
treating anything missing or unparseable as an open bound rather than an
error.
"""

from __future__ import annotations

import datetime
from typing import Any

# Stand-ins for an item with no stated start or end: "always in effect".
FAR_PAST = datetime.date.min
FAR_FUTURE = datetime.date.max


def parse_date(value: Any) -> datetime.date | None:
    """Parse a date-like value, returning None when it cannot be parsed.

    Accepts ``YYYY-MM-DD`` strings, ISO date-time strings (reduced to their
    date) and ``date``/``datetime`` instances.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def within_range(target: Any, start: Any = None, end: Any = None) -> bool:
    """Return True if ``target`` falls inside the closed interval [start, end].

    A missing bound is unbounded on that side. A target that cannot be parsed
    is never in range.
    """
    target_date = parse_date(target)
    if target_date is None:
        return False

    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is not None and target_date < start_date:
        return False
    if end_date is not None and target_date > end_date:
        return False
    return True


def ranges_overlap(
    filter_start: Any = None,
    filter_end: Any = None,
    item_start: Any = None,
    item_end: Any = None,
) -> bool:
    """Return True if [filter_start, filter_end] intersects [item_start, item_end].

    Absent filter bounds are open. Absent item bounds default to the far past
    and far future respectively.
    """
    fs = parse_date(filter_start)
    fe = parse_date(filter_end)
    effective_item_start = parse_date(item_start) or FAR_PAST
    effective_item_end = parse_date(item_end) or FAR_FUTURE

    if fs is not None and effective_item_end < fs:
        return False
    if fe is not None and effective_item_start > fe:
        return False
    return True


def shift_days(value: Any, days: int) -> datetime.date | None:
    """Return the date ``days`` before ``value``, or None if it cannot be parsed."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    try:
        return parsed - datetime.timedelta(days=days)
    except OverflowError:
        return None


def today_iso() -> str:
    """Today's date as ``YYYY-MM-DD`` in UTC."""
    return datetime.datetime.now(datetime.timezone.utc).date().isoformat()
