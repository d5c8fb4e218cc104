import bisect
import itertools
import logging
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from datetime import date
from functools import reduce
from typing import Any

from typing_extensions import override

from datealgebra.errors import InvalidInput
from datealgebra.interval import Interval
from datealgebra.util import start_key, to_date, touches

logger = logging.getLogger(__name__)


class IntervalSet:
    """An ordered union of date intervals.

    Ranges are kept sorted by start, never overlap and never touch: two
    ranges one day apart are merged into one. Only the first range may be
    unbounded at the start and only the last one at the end. Every operation
    returns a new set; instances are never modified.
    """

    __slots__ = ("_ranges",)

    def __init__(self, intervals: Interval | Iterable[Interval] = ()) -> None:
        """Build a set from intervals in any order; overlaps are merged.

        Example:
            >>> IntervalSet([
            ...     Interval.make("2021-02-01", "2021-02-28"),
            ...     Interval.make("2021-01-01", "2021-01-31"),
            ... ]).to_array()
            [['2021-01-01', '2021-02-28']]
        """
        if isinstance(intervals, Interval):
            intervals = (intervals,)
        merged = reduce(IntervalSet.insert, intervals, IntervalSet._from_normalized(()))
        self._ranges: tuple[Interval, ...] = merged._ranges

    @classmethod
    def _from_normalized(cls, ranges: Iterable[Interval]) -> "IntervalSet":
        """Wrap ranges that already satisfy the set invariants."""
        instance = cls.__new__(cls)
        instance._ranges = tuple(ranges)
        return instance

    @classmethod
    def from_array(cls, array: Sequence[Sequence[Any]]) -> "IntervalSet":
        """Rebuild a set from ``[[start, end], ...]`` pairs in any order."""
        if not isinstance(array, (list, tuple)):
            raise InvalidInput(
                f"Expected a list of [start, end] pairs, got {type(array).__name__!r}\n"
                f"Example: [['2021-01-01', '2021-01-31'], ['2021-03-01', None]]"
            )
        result = cls(Interval.from_array(pair) for pair in array)
        logger.debug(
            "decoded %d pairs into %d ranges", len(array), len(result._ranges)
        )
        return result

    def to_array(self) -> list[list[str | None]]:
        return [interval.to_array() for interval in self._ranges]

    @property
    def ranges(self) -> tuple[Interval, ...]:
        return self._ranges

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._ranges)

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def is_empty(self) -> bool:
        return not self._ranges

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return self._ranges == other._ranges

    @override
    def __hash__(self) -> int:
        return hash(self._ranges)

    @override
    def __repr__(self) -> str:
        return f"IntervalSet({self.to_array()!r})"

    def __or__(self, other: "IntervalSet") -> "IntervalSet":
        return self.union(other)

    def __and__(self, other: "IntervalSet") -> "IntervalSet":
        return self.intersect(other)

    def __sub__(self, other: "IntervalSet") -> "IntervalSet":
        return self.subtract(other)

    def __invert__(self) -> "IntervalSet":
        return self.complement()

    def _split_index(self, interval: Interval) -> int:
        """Number of ranges that start strictly before ``interval`` starts.

        Only the last of those can overlap ``interval``; any other overlap is
        with ranges at or after the returned index.
        """
        return bisect.bisect_left(
            self._ranges, interval.start_key, key=lambda r: r.start_key
        )

    def insert(self, interval: Interval) -> "IntervalSet":
        """Return a set that also covers ``interval``."""
        index = self._split_index(interval)
        before = list(self._ranges[:index])
        after = deque(self._ranges[index:])

        if before:
            last = before[-1]
            if last.end is None:
                return self
            # Non-empty ``before`` means the new interval has a start
            if touches(last.end, interval.start):
                before.pop()
                interval = interval.with_start(last.start)
                if interval.end is not None and last.end > interval.end:
                    interval = interval.with_end(last.end)

        if interval.end is None:
            return IntervalSet._from_normalized([*before, interval])

        while after and (
            after[0].start is None or touches(interval.end, after[0].start)
        ):
            first = after.popleft()
            if first.end is None:
                return IntervalSet._from_normalized([*before, interval.with_end(None)])
            if first.end > interval.end:
                interval = interval.with_end(first.end)

        return IntervalSet._from_normalized([*before, interval, *after])

    def remove(self, interval: Interval) -> "IntervalSet":
        """Return a set that no longer covers any day of ``interval``."""
        index = self._split_index(interval)
        before = list(self._ranges[:index])
        after = deque(self._ranges[index:])

        fragments: list[Interval] = []
        if before:
            fragments.extend(before.pop().subtract(interval))

        if interval.end is None:
            return IntervalSet._from_normalized([*before, *fragments])

        # Unlike insert, merely adjacent ranges are left alone
        while after and (after[0].start is None or after[0].start <= interval.end):
            fragments.extend(after.popleft().subtract(interval))

        return IntervalSet._from_normalized([*before, *fragments, *after])

    subtract_interval = remove

    def union(self, other: "IntervalSet") -> "IntervalSet":
        result = reduce(IntervalSet.insert, other._ranges, self)
        logger.debug("union of %d and %d ranges: %d", len(self), len(other), len(result))
        return result

    def subtract(self, other: "IntervalSet") -> "IntervalSet":
        result = reduce(IntervalSet.remove, other._ranges, self)
        logger.debug(
            "subtracted %d ranges from %d: %d", len(other), len(self), len(result)
        )
        return result

    def intersect(self, other: "IntervalSet") -> "IntervalSet":
        """Return the days covered by both sets.

        Algorithm: walk both sets in lockstep, holding one current range from
        each. ``Interval.compare`` yields their overlap (if any) and the
        trailing ``after`` fragment. Whichever side owns ``after`` may still
        overlap later ranges of the other set, so it stays current (trimmed to
        the fragment) while the other side advances. Without an ``after``
        fragment both ranges end together and both sides advance.

        Overlaps come out in ascending order and can never touch, because a
        gap in either input is a gap in the result.
        """
        mine = iter(self._ranges)
        theirs = iter(other._ranges)
        current = next(mine, None)
        candidate = next(theirs, None)

        overlaps: list[Interval] = []
        while current is not None and candidate is not None:
            comparison = current.compare(candidate)
            if comparison.intersection is not None:
                overlaps.append(comparison.intersection)

            if comparison.after is None:
                current = next(mine, None)
                candidate = next(theirs, None)
            elif comparison.after_from_self:
                current = comparison.after
                candidate = next(theirs, None)
            else:
                candidate = comparison.after
                current = next(mine, None)

        logger.debug(
            "intersection of %d and %d ranges: %d", len(self), len(other), len(overlaps)
        )
        return IntervalSet._from_normalized(overlaps)

    def complement(self) -> "IntervalSet":
        """Return every date not covered by this set."""
        return IntervalSet._from_normalized((Interval(),)).subtract(self)

    def contains(self, day: Any) -> bool:
        """True if any range of the set covers ``day``."""
        day = to_date(day)
        if day is None:
            raise InvalidInput("Cannot test containment of an empty date")
        index = bisect.bisect_right(
            self._ranges, start_key(day), key=lambda r: r.start_key
        )
        return index > 0 and self._ranges[index - 1].contains(day)

    def __contains__(self, day: Any) -> bool:
        return self.contains(day)

    def length_in_days(self) -> int:
        """Total number of days covered; every range must be closed."""
        return sum(interval.length_in_days() for interval in self._ranges)

    def days(self) -> Iterator[date]:
        """Iterate every covered date in ascending order.

        Raises:
            RangeNotClosed: If any range is unbounded (checked up front)
        """
        sequences = [interval.days() for interval in self._ranges]
        return itertools.chain.from_iterable(sequences)


def union(*sets: IntervalSet) -> IntervalSet:
    """Compose sets with union semantics (equivalent to chaining `|`)."""

    if not sets:
        raise ValueError(
            f"union() requires at least one IntervalSet argument.\n"
            f"Example: union(set_a, set_b, set_c)"
        )

    return reduce(lambda acc, nxt: acc | nxt, sets)


def intersection(*sets: IntervalSet) -> IntervalSet:
    """Compose sets with intersection semantics (equivalent to chaining `&`)."""

    if not sets:
        raise ValueError(
            f"intersection() requires at least one IntervalSet argument.\n"
            f"Example: intersection(set_a, set_b, set_c)"
        )

    return reduce(lambda acc, nxt: acc & nxt, sets)
