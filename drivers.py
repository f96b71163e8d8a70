"""
Driver model: per-year business aggregates (revenue, students, franchise
counts, raw cost fields) for year indices 0..10.

The aggregator treats this as an opaque read-only table. build_driver_model
generates one from parameters so the engine can run standalone; an
externally computed table can be wrapped with DriverModel.from_records.
"""
import math
import logging
import pandas as pd

from config import DEFAULT_PARAMETERS, CAPEX_SCENARIOS, BASE_CALENDAR_YEAR, NUM_YEARS
from errors import ConfigurationError, OutOfRangeError, as_number, check_year

logger = logging.getLogger(__name__)

COST_FIELDS = ["technologyOpex","marketing","facilities","teacherTraining","qualityAssurance",
               "regulatoryCompliance","dataManagement","parentEngagement","contentDevelopment",
               "badDebt","paymentProcessing","platformRD","legal","insurance","travel",
               "workingCapital","contingency","architectPayment"]

RAW_STAFF_FIELDS = ["staffCorporate","staffFlagship","staffFranchiseSupport","staffAdoptionSupport"]


class DriverModel:
    """Read-only per-year driver records, indexed by year index."""

    def __init__(self, records):
        records = list(records)
        if len(records) < NUM_YEARS:
            raise OutOfRangeError(f"driver table has {len(records)} years, expected {NUM_YEARS}")
        self._records = {}
        for i, rec in enumerate(records):
            y = int(rec.get("year_index", i))
            self._records[y] = rec

    @classmethod
    def from_records(cls, records):
        return cls(records)

    def year(self, year_index):
        check_year(year_index)
        try:
            return self._records[year_index]
        except KeyError:
            raise OutOfRangeError(f"driver table has no year {year_index}") from None

    def value(self, year_index, path):
        """Dotted lookup such as 'revenue.total' or 'costs.marketing'; absent values read as 0."""
        node = self.year(year_index)
        for key in path.split("."):
            node = node.get(key) if isinstance(node, dict) else None
            if node is None: return 0.0
        return as_number(node, f"Y{year_index} {path}")

    def revenue(self, year_index): return self.value(year_index, "revenue.total")
    def students(self, year_index): return self.value(year_index, "students.total")

    def to_frame(self):
        df = pd.json_normalize([self._records[y] for y in sorted(self._records)])
        if "year_index" not in df.columns: df["year_index"] = sorted(self._records)
        return df.set_index("year_index")

    def __len__(self): return len(self._records)


# ── Driver generation ───────────────────────────────────────

def franchise_count_for(year_index, params=None):
    p = params or DEFAULT_PARAMETERS
    if year_index <= 2: return 0
    return min((year_index - 2) * p["franchise_growth_rate"], p["max_franchises"])

def adoption_students_for(year_index, params=None):
    p = params or DEFAULT_PARAMETERS
    start, target = p["adoption_start_students"], p["adoption_students"]
    if year_index <= 1: return 0.0
    if year_index == 2: return float(start)
    return min(start + (target - start) * ((year_index - 2) / 8), target)

def _year_drivers(p, y, prev_franchises):
    yo = p.get("yearlyOverrides", {}).get(y, {})
    flagship = yo.get("flagship_students", p["flagship_students_ramp"].get(y, p["flagship_students"]))
    fc = yo.get("franchise_count", franchise_count_for(y, p))
    f_students = fc * yo.get("students_per_franchise", p["students_per_franchise"])
    adoption = yo.get("adoption_students", adoption_students_for(y, p))
    total_students = flagship + f_students + adoption

    growth = (1 + p["tuition_increase_rate"]) ** max(0, y - 1)
    tuition = yo.get("tuition", p["flagship_tuition"] * growth)
    adoption_fee = yo.get("adoption_fee", p["adoption_license_fee"] * growth)
    kit_cost = yo.get("kit_cost", p["kit_cost_per_student"] * growth)
    new_franchises = max(0, fc - prev_franchises)

    flagship_rev = flagship * tuition * 12
    f_tuition_rev = f_students * tuition * 12
    revenue = {"flagship": flagship_rev,
               "franchiseRoyalty": f_tuition_rev * p["franchise_royalty_rate"],
               "franchiseMarketing": f_tuition_rev * p["marketing_fee_rate"],
               "franchiseFees": new_franchises * p["franchise_fee"],
               "adoption": adoption * adoption_fee * 12,
               "kits": total_students * kit_cost}
    rev = sum(revenue.values()); revenue["total"] = rev

    r = p["rates"]; fl = p["floors"]; ps = p["per_student"]
    infl = (1 + p["inflation_rate"]) ** y
    if y == 0: architect = p["architect_upfront"] + 11 * p["architect_monthly"]
    elif y <= 2: architect = 12 * p["architect_monthly"]
    else: architect = 0.0
    adoption_schools = math.ceil(adoption / 500)
    costs = {
        "technologyOpex": rev * r["technology"],
        "marketing": rev * r["marketing"],
        "facilities": p["facilities_base"] * infl,
        "teacherTraining": max(fl["teacher_training"], (flagship + f_students) * ps["teacher_training"]) * infl,
        "qualityAssurance": max(fl["quality_assurance"], rev * r["quality_assurance"]),
        "regulatoryCompliance": max(fl["regulatory_compliance"], rev * r["regulatory_compliance"]),
        "dataManagement": max(fl["data_management"], total_students * ps["data_management"]),
        "parentEngagement": max(fl["parent_engagement"], total_students * ps["parent_engagement"]),
        "contentDevelopment": rev * r["content_development"],
        "badDebt": rev * r["bad_debt"],
        "paymentProcessing": rev * r["payment_processing"],
        "platformRD": rev * r["platform_rd"],
        "legal": max(fl["legal"], rev * r["legal"]),
        "insurance": p["insurance_base"] * infl,
        "travel": max(fl["travel"], (fc + math.floor(adoption / p["travel_adoption_divisor"])) * p["travel_per_unit"]),
        "workingCapital": rev * r["working_capital"],
        "contingency": rev * r["contingency"],
        "architectPayment": architect,
        # raw staff fields; the aggregator derives staff from rosters instead
        "staffCorporate": max(3000000.0, total_students * 80) * infl,
        "staffFlagship": max(5000000.0, flagship * 4400) * infl if flagship > 0 else 0.0,
        "staffFranchiseSupport": fc * 300000.0 * infl,
        "staffAdoptionSupport": math.ceil(adoption_schools / 20) * 10000.0 * 12 * infl,
    }
    costs["total"] = sum(costs[k] for k in COST_FIELDS if k != "architectPayment") + sum(costs[k] for k in RAW_STAFF_FIELDS)

    scen = CAPEX_SCENARIOS[p["capexScenario"]]
    if "capex" in yo: capex = yo["capex"]
    elif y in scen["capex_by_year"]: capex = scen["capex_by_year"][y]
    else: capex = rev * (p["capex_maintenance_rate_early"] if y <= 5 else p["capex_maintenance_rate_late"])

    return {"year_index": y, "calendar_year": BASE_CALENDAR_YEAR + y,
            "students": {"flagship": flagship, "franchise": f_students,
                         "adoption": round(adoption), "total": round(total_students)},
            "franchise_count": fc, "revenue": revenue, "costs": costs,
            "capex": capex, "ebitda": rev - costs["total"]}

def build_driver_model(params=None):
    p = params or DEFAULT_PARAMETERS
    if p.get("capexScenario") not in CAPEX_SCENARIOS:
        raise ConfigurationError(f"unknown capex scenario {p.get('capexScenario')!r}")
    records = []; prev_fc = 0
    for y in range(NUM_YEARS):
        rec = _year_drivers(p, y, prev_fc)
        prev_fc = rec["franchise_count"]; records.append(rec)
    logger.debug("Built driver model for scenario %s", p["capexScenario"])
    return DriverModel(records)
