"""
Exceptions raised by the financify engine.

All errors are local validation failures surfaced synchronously to the caller.
"""


class FinancifyError(Exception):
    """Base exception for engine errors."""


class MalformedDate(FinancifyError, ValueError):
    """Raised when a calendar date string cannot be parsed."""


class InvalidEffectiveDate(FinancifyError, ValueError):
    """Raised when a cost edit takes effect before the version chain starts."""


class InvalidSplitConfiguration(FinancifyError, ValueError):
    """Raised when split percentages or fixed amounts do not reconcile."""


class InvalidShift(FinancifyError, ValueError):
    """Raised when a shift has malformed times or a non-positive hourly rate."""
