"""
Debt service schedule for the bridge, Desenvolve SP and innovation loans.
Only the financing scenario in config.DEBT_SCENARIO carries debt; every
other scenario yields an all-zero schedule.
"""
from dataclasses import dataclass, asdict

import pandas as pd

from config import LOAN_TERMS, DEBT_SCENARIO, NUM_YEARS
from errors import check_year

COMPONENTS = ("bridgeInterest", "bridgeRepayment", "dspInterest", "innovationInterest", "principal")


@dataclass(frozen=True)
class DebtServiceState:
    bridgeInterest: float = 0.0
    bridgeRepayment: float = 0.0
    dspInterest: float = 0.0
    innovationInterest: float = 0.0
    principal: float = 0.0
    remainingPrincipal: float = 0.0

    @property
    def totalDebtService(self):
        return sum(getattr(self, c) for c in COMPONENTS)

    def component(self, name):
        return getattr(self, name)

    def to_dict(self):
        d = asdict(self); d["totalDebtService"] = self.totalDebtService
        return d


def calc_debt_service(year_index, capex_scenario, terms=None):
    check_year(year_index)
    if capex_scenario != DEBT_SCENARIO:
        return DebtServiceState()
    t = terms or LOAN_TERMS
    rate = t["annual_rate"]
    dsp, inn = t["dsp_principal"], t["innovation_principal"]
    total_principal = dsp + inn
    grace = t["grace_end_year"]; n_years = t["amortization_years"]
    annual_principal = total_principal / n_years

    bridge_interest = bridge_repayment = dsp_interest = inn_interest = principal = 0.0
    remaining = total_principal if year_index >= 1 else 0.0
    if year_index == 0:
        bridge_interest = t["bridge_principal"] * t["bridge_monthly_rate"] * t["bridge_months"]
        bridge_repayment = t["bridge_principal"]
    if year_index >= 1:
        dsp_interest = dsp * rate
        inn_interest = inn * rate
    if grace <= year_index < grace + n_years:
        principal = annual_principal
        paid = year_index - grace
        remaining = total_principal - paid * annual_principal
        dsp_interest = remaining * rate * (dsp / total_principal)
        inn_interest = remaining * rate * (inn / total_principal)
    elif year_index >= grace + n_years:
        remaining = total_principal - n_years * annual_principal
    return DebtServiceState(bridge_interest, bridge_repayment, dsp_interest,
                            inn_interest, principal, remaining)


def debt_schedule(capex_scenario, terms=None):
    rows = []
    for y in range(NUM_YEARS):
        d = calc_debt_service(y, capex_scenario, terms).to_dict(); d["year_index"] = y
        rows.append(d)
    return pd.DataFrame(rows)
