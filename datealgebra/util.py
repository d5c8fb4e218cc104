"""Date helpers and constants for datealgebra.

Everything here works on whole calendar days. ``None`` stands for an
unbounded side of a range: -∞ when used as a start, +∞ when used as an end.
"""

from datetime import date, datetime, timedelta
from typing import Any

from dateutil.parser import isoparse

from datealgebra.errors import InvalidInput

DAY = timedelta(days=1)


def day_before(day: date) -> date:
    return day - DAY


def day_after(day: date) -> date:
    return day + DAY


def days_between(first: date, last: date) -> int:
    """Whole days from ``first`` to ``last`` (negative if ``last`` is earlier)."""
    return (last - first).days


def touches(end: date, start: date) -> bool:
    """True if a range ending at ``end`` overlaps or abuts one starting at ``start``.

    Computed as a day difference so that ranges at ``date.min``/``date.max``
    never step outside the representable calendar.
    """
    return days_between(end, start) <= 1


def start_key(bound: date | None) -> tuple[int, date]:
    """Sort key for a start bound; unbounded sorts before every date."""
    if bound is None:
        return (0, date.min)
    return (1, bound)


def end_key(bound: date | None) -> tuple[int, date]:
    """Sort key for an end bound; unbounded sorts after every date."""
    if bound is None:
        return (1, date.max)
    return (0, bound)


def to_date(value: Any, edge: str = "date") -> date | None:
    """Coerce ``value`` to a calendar date.

    Accepts:
    - None or "": unbounded (returns None)
    - date: passed through
    - datetime: truncated to its date (time and tzinfo are dropped)
    - str: ISO 8601 date, e.g. "2021-01-31". Parsing goes through
      ``dateutil.parser.isoparse``, so other ISO 8601 forms are read too:
      "2021" gives January 1st, "2021-W01" gives the Monday of that ISO
      week, "20210101" is the basic format, and "2021-01-01T12:00" is
      truncated to its date.

    Raises:
        InvalidInput: If the value is of an unsupported type or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return isoparse(value).date()
        except (ValueError, OverflowError) as exc:
            raise InvalidInput(
                f"Invalid {edge} format: {value!r}\n"
                f"Expected an ISO date string, e.g. '2021-01-31'"
            ) from exc
    raise InvalidInput(
        f"Invalid {edge}: expected date, datetime, str or None.\n"
        f"Got {type(value).__name__!r}: {value!r}"
    )


def format_date(bound: date | None) -> str | None:
    if bound is None:
        return None
    return bound.isoformat()
