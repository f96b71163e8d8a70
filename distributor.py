"""
Monthly distributor: spreads an annual expense figure over twelve months
following the category's temporal pattern.
"""
import logging
import numpy as np

from categories import Pattern, get_category
from config import LOAN_TERMS
from errors import as_number, check_year

logger = logging.getLogger(__name__)

# Year-1 revenue ramp, kept literal (not an arithmetic progression)
REVENUE_RAMP_WEIGHTS = np.array([0.5, 0.6, 0.7, 0.8, 0.85, 0.9, 0.95, 1.0, 1.05, 1.1, 1.15, 1.2])
STAFF_RAMP_Y0 = np.array([0.5] * 4 + [0.75] * 4 + [1.0] * 4)
QUARTER_END_MONTHS = [2, 5, 8, 11]
ARCHITECT_UPFRONT = 100000.0
ARCHITECT_MONTHLY = 45833.0
BRIDGE_PAYMENT_MONTH = 9


def _flat(annual):
    return np.full(12, annual / 12)

def _months(selected, each):
    out = np.zeros(12); out[selected] = each
    return out

def _staff_ramp(y, annual):
    return _flat(annual) * STAFF_RAMP_Y0 if y == 0 else _flat(annual)

def _revenue_weighted(y, annual):
    if y == 0: return _months(list(range(8, 12)), annual / 5)
    if y == 1: return annual * REVENUE_RAMP_WEIGHTS / REVENUE_RAMP_WEIGHTS.sum()
    return _flat(annual)

def _construction(y, annual):
    if y == 0: return _months(list(range(3, 12)), annual / 9)
    return _flat(annual)

def _architect(y, annual):
    if y == 0:
        out = np.full(12, ARCHITECT_MONTHLY); out[0] = ARCHITECT_UPFRONT
        return out
    if y <= 2: return np.full(12, ARCHITECT_MONTHLY)
    return np.zeros(12)

def _october_lump(y, annual):
    return _months([BRIDGE_PAYMENT_MONTH], annual) if y == 0 else np.zeros(12)

def _loan_interest(y, annual):
    if y == 0: return _months(list(range(7, 12)), annual / 5)
    return _months(QUARTER_END_MONTHS, annual / 4)

def _amortization(y, annual):
    grace = LOAN_TERMS["grace_end_year"]
    if grace <= y < grace + LOAN_TERMS["amortization_years"]:
        return _months(QUARTER_END_MONTHS, annual / 4)
    return np.zeros(12)

_PATTERNS = {
    Pattern.STAFF_RAMP: _staff_ramp,
    Pattern.REVENUE_WEIGHTED: _revenue_weighted,
    Pattern.FLAT: lambda y, a: _flat(a),
    Pattern.CONSTRUCTION: _construction,
    Pattern.ARCHITECT: _architect,
    Pattern.OCTOBER_LUMP: _october_lump,
    Pattern.LOAN_INTEREST: _loan_interest,
    Pattern.AMORTIZATION: _amortization,
}


def distribute(category_id, year_index, annual_value):
    """Twelve monthly values for one category/year, from the pattern table alone."""
    cat = get_category(category_id); y = check_year(year_index)
    annual = as_number(annual_value, f"{category_id} Y{y} annual")
    return _PATTERNS[cat.pattern](y, annual).tolist()


def monthly_breakdown(category_id, year_index, annual_value, overrides=None):
    """Stored monthly override values when present, else the computed pattern."""
    if overrides is not None:
        stored = overrides.monthly_values(category_id, year_index)
        if stored is not None:
            logger.debug("Monthly override used for %s Y%d", category_id, year_index)
            return stored
    return distribute(category_id, year_index, annual_value)
