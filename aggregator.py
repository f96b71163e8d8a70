"""
Annual aggregator: one override-aware figure per expense category per
year, section subtotals, operating costs, cash out and EBITDA.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from categories import CATEGORIES, OPERATING_SECTIONS, SECTION_LABELS, Section, Source, categories_in, get_category
from config import BASE_CALENDAR_YEAR, DEBT_SCENARIO, NUM_YEARS
from debt import DebtServiceState, calc_debt_service
from errors import check_year
from expander import natural_roster_total
from overrides import OverrideKey

logger = logging.getLogger(__name__)


@dataclass
class YearProjection:
    year_index: int
    calendar_year: int
    categories: Dict[str, float]
    subtotals: Dict[str, float]
    debt_service: DebtServiceState
    total_debt_service: float
    total_operating_costs: float
    total_cash_out: float
    ebitda: float
    revenue: float
    students: float
    modified: List[str] = field(default_factory=list)

    @property
    def label(self):
        return year_label(self.year_index)

    def value(self, category_id):
        get_category(category_id)
        return self.categories[category_id]


def year_label(year_index):
    return f"Y{year_index} ({BASE_CALENDAR_YEAR + year_index})"


def computed_annual_value(category_id, year_index, drivers, debt=None):
    """Annual figure before any override is applied."""
    cat = get_category(category_id); y = check_year(year_index)
    if cat.source is Source.ROSTER:
        return 12 * natural_roster_total(category_id, y)
    if cat.source is Source.DEBT:
        return (debt or DebtServiceState()).component(cat.field)
    if cat.field == "capex":
        return drivers.value(y, "capex")
    return drivers.value(y, f"costs.{cat.field}")


def compute_year(year_index, drivers, overrides=None, capex_scenario=DEBT_SCENARIO):
    y = check_year(year_index)
    debt = calc_debt_service(y, capex_scenario)
    entries = overrides.snapshot() if overrides is not None else {}
    values = {}; modified = []
    for cid in CATEGORIES:
        stored = entries.get(OverrideKey(cid, y))
        if stored is not None:
            values[cid] = stored.annual_total; modified.append(cid)
        else:
            values[cid] = computed_annual_value(cid, y, drivers, debt)

    subtotals = {s.value: sum(values[c.id] for c in categories_in(s)) for s in Section}
    total_operating = sum(subtotals[s.value] for s in OPERATING_SECTIONS)
    # debt total stays on the computed schedule even when a component is overridden
    total_debt = debt.totalDebtService
    total_cash_out = total_operating + subtotals[Section.CAPEX.value] + total_debt
    revenue = drivers.revenue(y)
    logger.debug("Computed Y%d: opex=%.0f cash_out=%.0f (%d overrides)", y, total_operating,
                 total_cash_out, len(modified))
    return YearProjection(y, BASE_CALENDAR_YEAR + y, values, subtotals, debt, total_debt,
                          total_operating, total_cash_out, revenue - total_operating,
                          revenue, drivers.students(y), modified)


def compute_projection(drivers, overrides=None, capex_scenario=DEBT_SCENARIO):
    return [compute_year(y, drivers, overrides, capex_scenario) for y in range(NUM_YEARS)]


# -- Tables --

def projection_frame(projections):
    """All-expenses table: section subtotal and category rows, one column per year plus Total."""
    labels = [p.label for p in projections]
    rows = []
    def add(line, section, eid, vals, kind):
        rows.append({"Line Item": line, "Section": section, "Expense Id": eid, "Kind": kind,
                     **dict(zip(labels, vals)), "Total": sum(vals)})
    for s in Section:
        if s is Section.DEBT_SERVICE:
            add(SECTION_LABELS[s], s.value, None, [p.total_debt_service for p in projections], "subtotal")
        else:
            add(SECTION_LABELS[s], s.value, None, [p.subtotals[s.value] for p in projections], "subtotal")
        for c in categories_in(s):
            add(c.label, s.value, c.id, [p.categories[c.id] for p in projections], "category")
    add("Total Operating Costs", None, None, [p.total_operating_costs for p in projections], "total")
    add("Total Cash Out", None, None, [p.total_cash_out for p in projections], "total")
    add("Revenue", None, None, [p.revenue for p in projections], "reference")
    add("EBITDA", None, None, [p.ebitda for p in projections], "reference")
    return pd.DataFrame(rows)


def summary_frame(projections):
    rows = []
    for p in projections:
        r = {"year_index": p.year_index, "calendar_year": p.calendar_year, "revenue": p.revenue,
             "students": p.students}
        r.update({f"{k}_subtotal": v for k, v in p.subtotals.items()})
        r.update({"total_debt_service": p.total_debt_service,
                  "total_operating_costs": p.total_operating_costs,
                  "total_cash_out": p.total_cash_out, "ebitda": p.ebitda})
        rows.append(r)
    df = pd.DataFrame(rows)
    df["ebitda_margin"] = df.apply(lambda r: r["ebitda"] / r["revenue"] if r["revenue"] > 0 else 0, axis=1)
    return df


def expense_totals(projections):
    """Sums across all years: per category, per section, and the headline totals."""
    return {"categories": {cid: sum(p.categories[cid] for p in projections) for cid in CATEGORIES},
            "sections": {s.value: sum(p.subtotals[s.value] for p in projections) for s in Section},
            "total_debt_service": sum(p.total_debt_service for p in projections),
            "total_operating_costs": sum(p.total_operating_costs for p in projections),
            "total_cash_out": sum(p.total_cash_out for p in projections),
            "revenue": sum(p.revenue for p in projections)}
