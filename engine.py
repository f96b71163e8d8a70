"""
Expense engine facade.

Ties the driver model, override store and the three computation stages
(annual aggregation, monthly distribution, item expansion) together and
exposes the two save entry points the presentation shell calls.
"""
import io
import logging
import zipfile

import pandas as pd

from aggregator import (compute_projection, compute_year, computed_annual_value,
                        expense_totals, projection_frame, summary_frame, year_label)
from categories import CATEGORIES, find_category
from config import MONTHS, NUM_YEARS, get_parameters
from debt import calc_debt_service, debt_schedule
from distributor import distribute, monthly_breakdown
from drivers import build_driver_model
from errors import DriversNotReady, check_month, check_year
from expander import expand
from line_items import items_to_records
from overrides import OverrideStore

logger = logging.getLogger(__name__)


class ExpenseEngine:

    def __init__(self, params=None, drivers=None, overrides=None, build_drivers=True):
        self.params = params if params is not None else get_parameters()
        if drivers is None and build_drivers:
            drivers = build_driver_model(self.params)
        self.drivers = drivers
        self.overrides = overrides if overrides is not None else OverrideStore()

    @property
    def capex_scenario(self):
        return self.params.get("capexScenario")

    @property
    def ready(self):
        return self.drivers is not None

    def attach_drivers(self, drivers):
        self.drivers = drivers

    def _drivers(self):
        if self.drivers is None:
            raise DriversNotReady("driver projection not available yet")
        return self.drivers

    # -- annual --

    def projection(self):
        return compute_projection(self._drivers(), self.overrides, self.capex_scenario)

    def year(self, year_index):
        return compute_year(year_index, self._drivers(), self.overrides, self.capex_scenario)

    def computed_annual_value(self, category_id, year_index):
        y = check_year(year_index)
        return computed_annual_value(category_id, y, self._drivers(),
                                     calc_debt_service(y, self.capex_scenario))

    def annual_value(self, category_id, year_index):
        stored = self.overrides.annual_total(category_id, year_index)
        return stored if stored is not None else self.computed_annual_value(category_id, year_index)

    # -- monthly --

    def computed_monthly(self, category_id, year_index):
        return distribute(category_id, year_index, self.computed_annual_value(category_id, year_index))

    def monthly_breakdown(self, category_id, year_index):
        return monthly_breakdown(category_id, year_index,
                                 self.annual_value(category_id, year_index), self.overrides)

    def monthly_matrix(self, year_index):
        y = check_year(year_index)
        df = pd.DataFrame([self.monthly_breakdown(cid, y) for cid in CATEGORIES],
                          index=list(CATEGORIES), columns=MONTHS)
        df["Annual"] = df[MONTHS].sum(axis=1)
        df.index.name = "expense_id"
        return df

    # -- items --

    def month_items(self, category_id, year_index, month_index):
        y = check_year(year_index); m = check_month(month_index)
        if find_category(category_id) is None:
            return []
        return expand(category_id, y, m, self.monthly_breakdown(category_id, y)[m], self.overrides)

    # -- save callbacks --

    def save_expense(self, payload):
        """Annual/monthly save: {expenseId, yearIndex, monthlyValues, annualTotal, itemOverrides?}."""
        return self.overrides.set_annual_override(payload["expenseId"], payload["yearIndex"],
                                                  payload["monthlyValues"], payload.get("annualTotal"),
                                                  payload.get("itemOverrides"))

    def save_month_detail(self, payload):
        """Item-level save: {expenseId, monthIndex, yearIndex, items, newTotal, applyToRestOfYear}."""
        cid, y = payload["expenseId"], payload["yearIndex"]
        base = None if self.overrides.has(cid, y) else self.monthly_breakdown(cid, y)
        return self.overrides.set_item_override(cid, y, payload["monthIndex"], payload["items"],
                                                payload["newTotal"],
                                                bool(payload.get("applyToRestOfYear", False)), base)

    def reset_expense(self, category_id, year_index):
        return self.overrides.reset(category_id, year_index)

    def reset_all(self):
        self.overrides.clear()

    def is_modified(self, category_id, year_index):
        return self.overrides.has(category_id, year_index)

    def modified_keys(self):
        return self.overrides.modified_keys()

    # -- tables --

    def projection_frame(self): return projection_frame(self.projection())
    def summary_frame(self): return summary_frame(self.projection())
    def totals(self): return expense_totals(self.projection())
    def debt_schedule(self): return debt_schedule(self.capex_scenario)

    def month_items_frame(self, category_id, year_index, month_index):
        return pd.DataFrame(items_to_records(self.month_items(category_id, year_index, month_index)))

    # -- export --

    def export_results_csv(self, prefix="expenses"):
        exports = {}
        exports[f"{prefix}_all_expenses.csv"] = self.projection_frame().to_csv(index=False)
        exports[f"{prefix}_summary.csv"] = self.summary_frame().to_csv(index=False)
        exports[f"{prefix}_debt_schedule.csv"] = self.debt_schedule().to_csv(index=False)
        monthly = []
        for y in range(NUM_YEARS):
            m = self.monthly_matrix(y).reset_index(); m.insert(0, "year", year_label(y))
            monthly.append(m)
        exports[f"{prefix}_monthly.csv"] = pd.concat(monthly).to_csv(index=False)
        ov = self.overrides.to_records()
        if ov:
            exports[f"{prefix}_overrides.csv"] = pd.DataFrame(ov).to_csv(index=False)
            items = self.overrides.item_records()
            if items: exports[f"{prefix}_item_overrides.csv"] = pd.DataFrame(items).to_csv(index=False)
        return exports

    def export_all_to_zip(self, prefix="expenses"):
        csvs = self.export_results_csv(prefix)
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, content in csvs.items(): zf.writestr(name, content)
        logger.info("Exported %d tables", len(csvs))
        return buf.getvalue()


def run_engine(scenario="realistic", custom_overrides=None):
    return ExpenseEngine(get_parameters(scenario, custom_overrides))


if __name__ == "__main__":
    from config import configure_logging
    configure_logging()
    eng = run_engine()
    s = eng.summary_frame()
    print(s[["year_index","revenue","total_operating_costs","total_cash_out","ebitda"]].to_string(index=False))
    print(f"Categories: {len(CATEGORIES)}  Scenario: {eng.capex_scenario}")
    print("Done.")
