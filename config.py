"""
Configuration for the school-network expense engine.
Default driver parameters, scenario presets, capex scenarios and the
fixed loan terms behind the debt-service schedule.
"""
import os
import logging
from copy import deepcopy

# ── General ─────────────────────────────────────────────────

LOG_LEVEL = os.getenv("EXPENSE_ENGINE_LOG_LEVEL", "WARNING")

BASE_CALENDAR_YEAR = 2026
NUM_YEARS = 11
MONTHS_PER_YEAR = 12
MONTHS = ["Jan","Feb","Mar","Apr","May","Jun","Jul","Aug","Sep","Oct","Nov","Dec"]

# Gap under which a roster is considered to match its target
ROSTER_TOLERANCE = 100.0

def configure_logging(level=None):
    logging.basicConfig(level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

# ── Driver Parameters ───────────────────────────────────────

DEFAULT_PARAMETERS = {
    "flagship_students": 1200,
    "flagship_students_ramp": {0: 0, 1: 300, 2: 750},
    "flagship_tuition": 2100.0,
    "tuition_increase_rate": 0.045,
    "franchise_growth_rate": 3,
    "max_franchises": 24,
    "students_per_franchise": 1200,
    "franchise_royalty_rate": 0.06,
    "marketing_fee_rate": 0.005,
    "franchise_fee": 150000.0,
    "adoption_students": 150000,
    "adoption_start_students": 2500,
    "adoption_license_fee": 150.0,
    "kit_cost_per_student": 1200.0,
    "inflation_rate": 0.05,
    "rates": {
        "technology": 0.04, "marketing": 0.05, "content_development": 0.04,
        "bad_debt": 0.02, "payment_processing": 0.025, "platform_rd": 0.06,
        "quality_assurance": 0.0015, "regulatory_compliance": 0.00075,
        "legal": 0.003, "working_capital": 0.01, "contingency": 0.005,
    },
    "floors": {
        "teacher_training": 200000.0, "quality_assurance": 45000.0,
        "regulatory_compliance": 60000.0, "data_management": 200000.0,
        "parent_engagement": 150000.0, "legal": 500000.0, "travel": 300000.0,
    },
    "per_student": {
        "teacher_training": 250.0, "data_management": 40.0, "parent_engagement": 60.0,
    },
    "facilities_base": 1500000.0,
    "insurance_base": 100000.0,
    "travel_per_unit": 50000.0,
    "travel_adoption_divisor": 5000,
    "capex_maintenance_rate_early": 0.005,
    "capex_maintenance_rate_late": 0.003,
    "architect_upfront": 100000.0,
    "architect_monthly": 45833.0,
    "capexScenario": "private-historic",
    "yearlyOverrides": {},
}

CAPEX_SCENARIOS = {
    "private-historic": {"name": "Private Historic Building",
        "capex_by_year": {0: 20000000.0, 1: 5000000.0},
        "description": "R$20M phase 1 + R$5M phase 2, bridge + Desenvolve SP + innovation loans"},
    "government": {"name": "Government Partnership",
        "capex_by_year": {0: 10000000.0},
        "description": "R$10M renovation, 30-year free building use from government"},
    "built-to-suit": {"name": "Built-to-Suit with 30-Year Lease",
        "capex_by_year": {0: 3000000.0},
        "description": "R$3M tech, developer builds the facility under a 30-year lease"},
    "direct": {"name": "Direct Investment & Construction",
        "capex_by_year": {0: 25000000.0},
        "description": "R$25M building construction + tech, full ownership"},
}

DEBT_SCENARIO = "private-historic"

LOAN_TERMS = {
    "bridge_principal": 10000000.0,
    "bridge_monthly_rate": 0.02,
    "bridge_months": 9,
    "dsp_principal": 30000000.0,
    "innovation_principal": 15000000.0,
    "annual_rate": 0.084,
    "grace_end_year": 4,
    "amortization_years": 5,
}

SCENARIO_PRESETS = {
    "pessimistic": {"label": "Pessimistic",
        "flagship_students": 1080, "students_per_franchise": 1080,
        "adoption_students": 135000, "flagship_tuition": 2070.0,
        "franchise_royalty_rate": 0.054, "franchise_growth_rate": 2,
        "rates": {"technology": 0.05, "marketing": 0.06}},
    "realistic": {"label": "Realistic"},
    "optimistic": {"label": "Optimistic",
        "flagship_students": 1500, "students_per_franchise": 1500,
        "adoption_students": 250000, "flagship_tuition": 2500.0,
        "adoption_license_fee": 200.0, "franchise_royalty_rate": 0.07,
        "tuition_increase_rate": 0.08, "franchise_growth_rate": 5,
        "rates": {"technology": 0.035, "marketing": 0.04}},
}

def apply_scenario_overrides(params, overrides):
    p = deepcopy(params)
    for k, v in overrides.items():
        if k == "label": continue
        if isinstance(v, dict) and k in p and isinstance(p[k], dict): p[k].update(v)
        else: p[k] = v
    return p

def get_parameters(scenario="realistic", custom_overrides=None):
    p = apply_scenario_overrides(DEFAULT_PARAMETERS, SCENARIO_PRESETS.get(scenario, {}))
    if custom_overrides: p = apply_scenario_overrides(p, custom_overrides)
    return p
