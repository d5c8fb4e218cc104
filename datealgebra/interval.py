from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, overload

from dateutil.relativedelta import relativedelta
from typing_extensions import override

from datealgebra.errors import InvalidInput, InvalidRange, RangeNotClosed
from datealgebra.util import (
    DAY,
    day_after,
    day_before,
    days_between,
    end_key,
    format_date,
    start_key,
    to_date,
)


@dataclass(frozen=True, kw_only=True)
class Interval:
    """A contiguous span of calendar days, inclusive on both ends.

    A ``None`` start reaches back indefinitely and a ``None`` end reaches
    forward indefinitely, so ``Interval()`` covers every date.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.end < self.start:
            raise InvalidRange(
                f"Interval end ({self.end}) must not be before start ({self.start})"
            )

    @override
    def __str__(self) -> str:
        """Human-friendly string showing range and length."""
        start_str = str(self.start) if self.start is not None else "-∞"
        end_str = str(self.end) if self.end is not None else "+∞"
        if self.is_closed:
            return f"Interval({start_str}→{end_str}, {self.length_in_days()}d)"
        return f"Interval({start_str}→{end_str})"

    @classmethod
    def make(cls, start: Any = None, end: Any = None) -> "Interval":
        """Build an interval from loosely typed bounds.

        Args:
            start: date, datetime, ISO date string, "" or None (unbounded)
            end: date, datetime, ISO date string, "" or None (unbounded)

        Raises:
            InvalidInput: If a bound cannot be read as a date
            InvalidRange: If end is before start

        Example:
            >>> Interval.make("2021-01-01", "2021-01-31")
            >>> Interval.make(None, date(2021, 1, 31))  # everything up to Jan 31
        """
        return cls(start=to_date(start, "start date"), end=to_date(end, "end date"))

    @classmethod
    def year(cls, year: int) -> "Interval":
        """Interval covering January 1st through December 31st of ``year``."""
        try:
            return cls(start=date(year, 1, 1), end=date(year, 12, 31))
        except ValueError as exc:
            raise InvalidInput(f"Invalid year: {year}") from exc

    @classmethod
    def month(cls, year: int, month: int) -> "Interval":
        """Interval covering every day of the given calendar month."""
        try:
            first = date(year, month, 1)
        except ValueError as exc:
            raise InvalidInput(f"Invalid month: {year}-{month}") from exc
        return cls(start=first, end=first + relativedelta(day=31))

    @classmethod
    def from_month_string(cls, month: str) -> "Interval":
        """Interval covering a month given as ``"YYYY-MM"``."""
        parts = month.split("-") if isinstance(month, str) else []
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise InvalidInput(
                f"Invalid month string: {month!r}\n" f"Expected 'YYYY-MM', e.g. '2023-10'"
            )
        return cls.month(int(parts[0]), int(parts[1]))

    @classmethod
    def from_array(cls, pair: Sequence[Any]) -> "Interval":
        """Inverse of ``to_array``; empty strings are read as unbounded."""
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidInput(
                f"Expected a [start, end] pair, got {pair!r}\n"
                f"Example: ['2021-01-01', None]"
            )
        return cls.make(pair[0], pair[1])

    def to_array(self) -> list[str | None]:
        return [format_date(self.start), format_date(self.end)]

    def with_start(self, start: date | None) -> "Interval":
        return replace(self, start=start)

    def with_end(self, end: date | None) -> "Interval":
        return replace(self, end=end)

    @property
    def start_key(self) -> tuple[int, date]:
        return start_key(self.start)

    @property
    def end_key(self) -> tuple[int, date]:
        return end_key(self.end)

    @property
    def has_start(self) -> bool:
        return self.start is not None

    @property
    def has_end(self) -> bool:
        return self.end is not None

    @property
    def is_closed(self) -> bool:
        return self.has_start and self.has_end

    @property
    def is_half_open(self) -> bool:
        return self.has_start != self.has_end

    @property
    def is_open(self) -> bool:
        return not self.has_start and not self.has_end

    def contains(self, day: Any) -> bool:
        """True if ``day`` falls inside this interval (bounds included)."""
        day = to_date(day)
        if day is None:
            raise InvalidInput("Cannot test containment of an empty date")
        return (self.start is None or self.start <= day) and (
            self.end is None or day <= self.end
        )

    def __contains__(self, day: Any) -> bool:
        return self.contains(day)

    def overlaps(self, other: "Interval") -> bool:
        """True if the two intervals share at least one day."""
        if self.end is not None and other.start is not None and self.end < other.start:
            return False
        if other.end is not None and self.start is not None and other.end < self.start:
            return False
        return True

    def intersect(self, other: "Interval") -> "Interval | None":
        """Return the days covered by both intervals, or None if there are none."""
        start = max(self.start, other.start, key=start_key)
        end = min(self.end, other.end, key=end_key)
        if start is not None and end is not None and end < start:
            return None
        return Interval(start=start, end=end)

    def compare(self, other: "Interval") -> "Comparison":
        """Split the union of two intervals into before/intersection/after.

        ``before`` is the part of the earlier-starting interval that precedes
        the intersection and ``after`` the part of the later-ending interval
        that follows it. When the intervals are disjoint there is no
        intersection, and ``before``/``after`` are the two intervals whole.
        The ``*_from_self`` flags tell which operand each fragment came from.
        """
        intersection = self.intersect(other)

        if intersection is None:
            self_first = self.start_key < other.start_key
            first, second = (self, other) if self_first else (other, self)
            return Comparison(
                before=first,
                before_from_self=self_first,
                intersection=None,
                after=second,
                after_from_self=not self_first,
            )

        before = before_from_self = None
        # Nothing precedes date.min, so an intersection starting there leaves no before
        if self.start_key != other.start_key and intersection.start != date.min:
            before_from_self = self.start_key < other.start_key
            earlier = self if before_from_self else other
            # Starts differ, so the intersection starts at a concrete date
            before = Interval(start=earlier.start, end=day_before(intersection.start))

        after = after_from_self = None
        if self.end_key != other.end_key and intersection.end != date.max:
            after_from_self = self.end_key > other.end_key
            later = self if after_from_self else other
            after = Interval(start=day_after(intersection.end), end=later.end)

        return Comparison(
            before=before,
            before_from_self=before_from_self,
            intersection=intersection,
            after=after,
            after_from_self=after_from_self,
        )

    def subtract(self, other: "Interval") -> tuple["Interval", ...]:
        """Return the 0, 1 or 2 fragments of this interval not covered by ``other``."""
        comparison = self.compare(other)
        fragments: list[Interval] = []
        if comparison.before is not None and comparison.before_from_self:
            fragments.append(comparison.before)
        if comparison.after is not None and comparison.after_from_self:
            fragments.append(comparison.after)
        return tuple(fragments)

    def _require_closed(self) -> tuple[date, date]:
        if self.start is None or self.end is None:
            raise RangeNotClosed(
                f"Date range is not closed: {self}\n"
                f"Hint: clip it first, e.g. interval.intersect(Interval.year(2021))"
            )
        return self.start, self.end

    def length_in_days(self) -> int:
        """Number of days covered, counting both the start and the end day."""
        start, end = self._require_closed()
        return days_between(start, end) + 1

    def days(self) -> "DaySequence":
        """Every date from start to end inclusive, as a lazy sequence."""
        start, end = self._require_closed()
        return DaySequence(start, end)


@dataclass(frozen=True)
class Comparison:
    """Result of ``Interval.compare``.

    Attributes:
        before: Leading fragment, or None if both intervals start together
        before_from_self: True if ``before`` came from the receiver, False if
            from the argument, None if there is no ``before``
        intersection: Days covered by both intervals, or None if disjoint
        after: Trailing fragment, or None if both intervals end together
        after_from_self: Ownership of ``after``, as for ``before_from_self``
    """

    before: Interval | None
    before_from_self: bool | None
    intersection: Interval | None
    after: Interval | None
    after_from_self: bool | None


class DaySequence(Sequence[date]):
    """Consecutive dates from ``first`` to ``last`` inclusive.

    Dates are computed on access, so the sequence is cheap to build and can
    be iterated any number of times.
    """

    def __init__(self, first: date, last: date):
        self.first: date = first
        self.last: date = last

    @override
    def __len__(self) -> int:
        return days_between(self.first, self.last) + 1

    @overload
    def __getitem__(self, index: int) -> date: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[date]: ...

    @override
    def __getitem__(self, index: int | slice) -> date | Sequence[date]:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        length = len(self)
        if index < 0:
            index += length
        if not 0 <= index < length:
            raise IndexError("DaySequence index out of range")
        return self.first + index * DAY

    @override
    def __iter__(self) -> Iterator[date]:
        for offset in range(len(self)):
            yield self.first + offset * DAY

    @override
    def __repr__(self) -> str:
        return f"DaySequence({self.first}, {self.last})"
