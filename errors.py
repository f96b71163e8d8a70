"""Exception types raised by the expense engine, and the numeric guard."""
import math
import numbers
import logging

logger = logging.getLogger(__name__)


class ExpenseEngineError(Exception):
    """Base class for engine contract violations."""


class ConfigurationError(ExpenseEngineError, KeyError):
    """Unknown category id or scenario key; indicates a caller bug."""

    def __str__(self):
        return Exception.__str__(self)


class OutOfRangeError(ExpenseEngineError, IndexError):
    """Year index outside 0..10, month index outside 0..11, or a bad monthly array."""


class DriversNotReady(ExpenseEngineError):
    """No driver projection has been attached yet."""


def as_number(value, name=None):
    """Coerce a driver or override value to float; anything unusable becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        v = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric value %r for %s treated as 0", value, name or "value")
        return 0.0
    if not math.isfinite(v):
        logger.warning("Non-finite value %r for %s treated as 0", value, name or "value")
        return 0.0
    return v


def check_year(year_index, num_years=11):
    if isinstance(year_index, bool) or not isinstance(year_index, numbers.Integral) or not 0 <= year_index < num_years:
        raise OutOfRangeError(f"year index {year_index!r} outside 0..{num_years - 1}")
    return int(year_index)


def check_month(month_index):
    if isinstance(month_index, bool) or not isinstance(month_index, numbers.Integral) or not 0 <= month_index < 12:
        raise OutOfRangeError(f"month index {month_index!r} outside 0..11")
    return int(month_index)
