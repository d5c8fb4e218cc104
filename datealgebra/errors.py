"""Exceptions raised by datealgebra.

All of them derive from ValueError, so callers that already guard date
parsing with ``except ValueError`` keep working.
"""


class DateAlgebraError(ValueError):
    """Base class for all datealgebra errors."""


class InvalidRange(DateAlgebraError):
    """A range whose end date lies before its start date."""


class InvalidInput(DateAlgebraError):
    """A value that does not decode into a date or a (start, end) pair."""


class RangeNotClosed(DateAlgebraError):
    """An operation needs both bounds, but the range is open on some side."""
