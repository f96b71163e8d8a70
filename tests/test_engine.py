"""End-to-end checks through the engine facade and its save callbacks."""
import io
import math
import zipfile

import pytest

from categories import CATEGORIES
from engine import ExpenseEngine, run_engine
from errors import ConfigurationError, DriversNotReady, OutOfRangeError
from line_items import SplitItem


def test_drivers_not_ready(drivers):
    eng = ExpenseEngine(build_drivers=False)
    assert not eng.ready
    with pytest.raises(DriversNotReady):
        eng.projection()
    eng.attach_drivers(drivers)
    assert len(eng.projection()) == 11


def test_save_expense_overrides_annual_and_monthly(engine):
    mv = [float(m) for m in range(12)]
    engine.save_expense({"expenseId": "operational.marketing", "yearIndex": 4,
                         "monthlyValues": mv, "annualTotal": 66.0})
    assert engine.year(4).categories["operational.marketing"] == 66.0
    assert engine.monthly_breakdown("operational.marketing", 4) == mv
    assert engine.is_modified("operational.marketing", 4)


def test_save_expense_defaults_total_to_sum(engine):
    engine.save_expense({"expenseId": "other.legal", "yearIndex": 2, "monthlyValues": [5] * 12})
    assert engine.annual_value("other.legal", 2) == 60


def test_save_month_detail_seeds_from_computed(engine):
    computed = engine.monthly_breakdown("operational.facilities", 3)
    items = [{"item": "Rent", "category": "Rent", "percentage": 100, "amount": 1000.0}]
    engine.save_month_detail({"expenseId": "operational.facilities", "monthIndex": 5, "yearIndex": 3,
                              "items": items, "newTotal": 1000.0, "applyToRestOfYear": False})
    monthly = engine.monthly_breakdown("operational.facilities", 3)
    assert monthly[5] == 1000.0
    assert monthly[:5] == pytest.approx(computed[:5])
    assert monthly[6:] == pytest.approx(computed[6:])
    assert engine.annual_value("operational.facilities", 3) == pytest.approx(sum(monthly))
    assert engine.month_items("operational.facilities", 3, 5) == [SplitItem("Rent", "Rent", 100, 1000.0)]


def test_save_month_detail_rest_of_year(engine):
    items = [SplitItem("Counsel", "Legal", 100, 200.0)]
    engine.save_month_detail({"expenseId": "other.legal", "monthIndex": 9, "yearIndex": 6,
                              "items": items, "newTotal": 200.0, "applyToRestOfYear": True})
    monthly = engine.monthly_breakdown("other.legal", 6)
    assert monthly[9:] == [200.0] * 3
    for m in range(9, 12):
        assert engine.month_items("other.legal", 6, m) == items
    assert engine.month_items("other.legal", 6, 8) != items


def test_staff_item_edit_changes_annual(engine):
    before = engine.year(2)
    roster = engine.month_items("staff.flagship", 2, 0)
    engine.save_month_detail({"expenseId": "staff.flagship", "monthIndex": 0, "yearIndex": 2,
                              "items": roster[:1], "newTotal": roster[0].total,
                              "applyToRestOfYear": True})
    after = engine.year(2)
    assert after.categories["staff.flagship"] == pytest.approx(12 * roster[0].total)
    assert after.ebitda > before.ebitda


def test_reset_restores_computed_values(engine):
    before = engine.summary_frame()
    engine.save_expense({"expenseId": "business.badDebt", "yearIndex": 7,
                         "monthlyValues": [1] * 12, "annualTotal": 12})
    assert not engine.summary_frame().equals(before)
    assert engine.reset_expense("business.badDebt", 7)
    assert engine.summary_frame().equals(before)
    assert not engine.is_modified("business.badDebt", 7)


def test_reset_all(engine):
    engine.save_expense({"expenseId": "other.legal", "yearIndex": 2, "monthlyValues": [5] * 12})
    engine.save_expense({"expenseId": "other.travel", "yearIndex": 2, "monthlyValues": [5] * 12})
    assert len(engine.modified_keys()) == 2
    engine.reset_all()
    assert engine.modified_keys() == []


def test_month_items_lookup_miss(engine):
    assert engine.month_items("other.unknown", 2, 3) == []
    with pytest.raises(OutOfRangeError):
        engine.month_items("other.legal", 2, 12)
    with pytest.raises(ConfigurationError):
        engine.monthly_breakdown("other.unknown", 2)


def test_monthly_matrix(engine):
    df = engine.monthly_matrix(3)
    assert df.shape == (len(CATEGORIES), 13)
    assert df.loc["other.legal", "Annual"] == pytest.approx(engine.annual_value("other.legal", 3))


def test_month_items_frame(engine):
    df = engine.month_items_frame("staff.corporate", 1, 0)
    assert {"role", "quantity", "monthlySalary", "total"} <= set(df.columns)


def test_exports(engine):
    names = set(engine.export_results_csv())
    assert "expenses_overrides.csv" not in names
    engine.save_month_detail({"expenseId": "other.legal", "monthIndex": 0, "yearIndex": 1,
                              "items": [SplitItem("Counsel", "Legal", 100, 1.0)], "newTotal": 1.0})
    with zipfile.ZipFile(io.BytesIO(engine.export_all_to_zip())) as zf:
        names = set(zf.namelist())
        assert {"expenses_all_expenses.csv", "expenses_summary.csv", "expenses_debt_schedule.csv",
                "expenses_monthly.csv", "expenses_overrides.csv", "expenses_item_overrides.csv"} == names
        assert "other.legal" in zf.read("expenses_overrides.csv").decode()


def test_scenario_switch_keeps_overrides(engine):
    engine.save_expense({"expenseId": "other.legal", "yearIndex": 2, "monthlyValues": [5] * 12})
    other = run_engine("optimistic", {"capexScenario": "direct"})
    other.overrides = engine.overrides
    assert other.annual_value("other.legal", 2) == 60
    assert other.year(5).total_debt_service == 0


def test_save_expense_total_defaults_past_missing_months(engine):
    engine.save_expense({"expenseId": "other.legal", "yearIndex": 2,
                         "monthlyValues": [100] * 3 + [None] + [100] * 8})
    assert engine.monthly_breakdown("other.legal", 2)[3] == 0
    assert engine.annual_value("other.legal", 2) == 1100
    assert engine.year(2).categories["other.legal"] == 1100


def test_unusable_save_values_stored_as_zero(engine):
    engine.save_expense({"expenseId": "other.travel", "yearIndex": 2,
                         "monthlyValues": [float("nan"), "abc"] + [10] * 10, "annualTotal": "abc"})
    assert engine.monthly_breakdown("other.travel", 2) == [0, 0] + [10] * 10
    assert engine.year(2).categories["other.travel"] == 0

    computed = engine.monthly_breakdown("other.insurance", 2)
    engine.save_month_detail({"expenseId": "other.insurance", "monthIndex": 4, "yearIndex": 2,
                              "items": [{"item": "Policy", "category": "Liability",
                                         "percentage": "n/a", "amount": None}],
                              "newTotal": float("nan")})
    monthly = engine.monthly_breakdown("other.insurance", 2)
    assert monthly[4] == 0
    assert all(math.isfinite(v) for v in monthly)
    assert engine.month_items("other.insurance", 2, 4) == [SplitItem("Policy", "Liability", 0.0, 0.0)]
    expected = sum(computed) - computed[4]
    assert engine.annual_value("other.insurance", 2) == pytest.approx(expected)
    assert engine.year(2).categories["other.insurance"] == pytest.approx(expected)
