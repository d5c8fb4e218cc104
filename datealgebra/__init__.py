from .errors import DateAlgebraError, InvalidInput, InvalidRange, RangeNotClosed
from .interval import Comparison, DaySequence, Interval
from .intervalset import IntervalSet, intersection, union
from .util import DAY

__all__ = [
    "Interval",
    "IntervalSet",
    "Comparison",
    "DaySequence",
    "union",
    "intersection",
    "DAY",
    "DateAlgebraError",
    "InvalidRange",
    "InvalidInput",
    "RangeNotClosed",
]
