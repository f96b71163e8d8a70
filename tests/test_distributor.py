import pytest

from distributor import REVENUE_RAMP_WEIGHTS, distribute, monthly_breakdown
from errors import ConfigurationError, OutOfRangeError


def test_staff_ramp_year_zero():
    assert distribute("staff.corporate", 0, 1200) == pytest.approx([50] * 4 + [75] * 4 + [100] * 4)


def test_staff_flat_after_year_zero():
    assert distribute("staff.flagship", 3, 1200) == pytest.approx([100] * 12)


def test_revenue_weighted_year_zero_last_four_months():
    assert distribute("operational.marketing", 0, 1000) == pytest.approx([0] * 8 + [200] * 4)


def test_revenue_weighted_ramp_year_one():
    months = distribute("business.platformRD", 1, 10800)
    assert REVENUE_RAMP_WEIGHTS.sum() == pytest.approx(10.8)
    assert months[0] == pytest.approx(500)
    assert months[4] == pytest.approx(850)
    assert months[11] == pytest.approx(1200)
    assert sum(months) == pytest.approx(10800)


def test_revenue_weighted_flat_later():
    assert distribute("operational.technology", 2, 1200) == pytest.approx([100] * 12)


def test_flat_categories():
    assert distribute("operational.facilities", 0, 120) == pytest.approx([10] * 12)
    assert distribute("other.insurance", 7, 120) == pytest.approx([10] * 12)


def test_construction_year_zero():
    assert distribute("capex.amount", 0, 900) == pytest.approx([0] * 3 + [100] * 9)
    assert distribute("capex.amount", 1, 1200) == pytest.approx([100] * 12)


def test_architect_fixed_schedule():
    assert distribute("capex.architectPayment", 0, 0) == pytest.approx([100000] + [45833] * 11)
    assert distribute("capex.architectPayment", 2, 0) == pytest.approx([45833] * 12)
    assert distribute("capex.architectPayment", 3, 999) == [0] * 12


def test_bridge_paid_in_october():
    assert distribute("debtService.bridgeInterest", 0, 1800000) == pytest.approx([0] * 9 + [1800000, 0, 0])
    assert distribute("debtService.bridgeRepayment", 1, 1) == [0] * 12


def test_loan_interest():
    assert distribute("debtService.dspInterest", 0, 500) == pytest.approx([0] * 7 + [100] * 5)
    assert distribute("debtService.innovationInterest", 3, 400) == pytest.approx(
        [0, 0, 100, 0, 0, 100, 0, 0, 100, 0, 0, 100])


def test_principal_only_in_amortization_years():
    assert distribute("debtService.principal", 4, 400) == pytest.approx([0, 0, 100] * 4)
    assert distribute("debtService.principal", 3, 400) == [0] * 12
    assert distribute("debtService.principal", 9, 400) == [0] * 12


def test_non_numeric_annual_is_zero():
    assert distribute("other.legal", 2, None) == [0] * 12
    assert distribute("other.legal", 2, float("nan")) == [0] * 12


def test_contract_violations():
    with pytest.raises(ConfigurationError):
        distribute("other.unknown", 2, 100)
    with pytest.raises(OutOfRangeError):
        distribute("other.legal", 11, 100)


def test_stored_monthly_values_returned_verbatim(store):
    mv = [float(i) for i in range(12)]
    store.set_annual_override("other.legal", 4, mv, 66)
    assert monthly_breakdown("other.legal", 4, 1200, store) == mv
    assert monthly_breakdown("other.legal", 5, 1200, store) == pytest.approx([100] * 12)
