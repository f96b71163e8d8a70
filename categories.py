"""
Expense category registry.
Fixed table of every expense line: label, formula description, section,
where its annual figure comes from, how it is spread over the months and
how a month is itemized. Never mutated at runtime.
"""
from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional

from errors import ConfigurationError


class Section(str, Enum):
    STAFF = "staff"
    OPERATIONAL = "operational"
    EDUCATIONAL = "educational"
    BUSINESS = "business"
    OTHER = "other"
    CAPEX = "capex"
    DEBT_SERVICE = "debtService"


# Sections whose subtotals make up total operating costs
OPERATING_SECTIONS = (Section.STAFF, Section.OPERATIONAL, Section.EDUCATIONAL,
                      Section.BUSINESS, Section.OTHER)

SECTION_LABELS = {
    Section.STAFF: "Staff", Section.OPERATIONAL: "Operational",
    Section.EDUCATIONAL: "Educational", Section.BUSINESS: "Business",
    Section.OTHER: "Other", Section.CAPEX: "CAPEX", Section.DEBT_SERVICE: "Debt Service",
}


class Pattern(str, Enum):
    """Temporal distribution rule used by the monthly distributor."""
    STAFF_RAMP = "staff_ramp"
    REVENUE_WEIGHTED = "revenue_weighted"
    FLAT = "flat"
    CONSTRUCTION = "construction"
    ARCHITECT = "architect"
    OCTOBER_LUMP = "october_lump"
    LOAN_INTEREST = "loan_interest"
    AMORTIZATION = "amortization"


class Breakdown(str, Enum):
    ROSTER = "roster"
    SPLIT = "split"


class Source(str, Enum):
    ROSTER = "roster"
    DRIVER = "driver"
    DEBT = "debt"


@dataclass(frozen=True)
class ExpenseCategory:
    id: str
    label: str
    formula: str
    section: Section
    source: Source
    field: str
    pattern: Pattern
    breakdown: Breakdown = Breakdown.SPLIT

    @property
    def sourced_from_roster(self):
        return self.source is Source.ROSTER

    @property
    def key(self):
        return self.id.split(".", 1)[1]


def _staff(key, label, formula):
    return ExpenseCategory(f"staff.{key}", label, formula, Section.STAFF, Source.ROSTER,
                           key, Pattern.STAFF_RAMP, Breakdown.ROSTER)

def _drv(section, key, label, formula, field, pattern=Pattern.FLAT):
    return ExpenseCategory(f"{section.value}.{key}", label, formula, section, Source.DRIVER,
                           field, pattern)

def _debt(key, label, formula, pattern):
    return ExpenseCategory(f"debtService.{key}", label, formula, Section.DEBT_SERVICE,
                           Source.DEBT, key, pattern)

_S, _O, _E, _B, _X, _C = (Section.STAFF, Section.OPERATIONAL, Section.EDUCATIONAL,
                          Section.BUSINESS, Section.OTHER, Section.CAPEX)
_RW = Pattern.REVENUE_WEIGHTED

_CATEGORY_LIST = [
    # Staff
    _staff("corporate", "Corporate Staff", "Max(R$3M, students × R$80) × inflation"),
    _staff("flagship", "Flagship Staff (Teachers + Admin)", "Max(R$5M, flagshipStudents × R$4,400) × inflation"),
    _staff("franchiseSupport", "Franchise Support Staff", "franchiseCount × R$300K × inflation"),
    _staff("adoptionSupport", "Adoption Support Staff", "(adoptionSchools ÷ 20) × R$10K/mo × 12 × inflation"),
    # Operational
    _drv(_O, "technology", "Technology (Platform & Infrastructure)", "Revenue × 4%", "technologyOpex", _RW),
    _drv(_O, "marketing", "Marketing & Sales", "Revenue × 5%", "marketing", _RW),
    _drv(_O, "facilities", "Facilities (Rent, Utilities, Maintenance)", "R$1.5M × (1.05)^year", "facilities"),
    # Educational
    _drv(_E, "teacherTraining", "Teacher Training", "Max(R$200K, (flagship+franchise) × R$250) × inflation", "teacherTraining"),
    _drv(_E, "qualityAssurance", "Quality Assurance", "Max(R$45K, Revenue × 0.15%)", "qualityAssurance"),
    _drv(_E, "regulatoryCompliance", "Regulatory Compliance", "Max(R$60K, Revenue × 0.075%)", "regulatoryCompliance"),
    _drv(_E, "dataManagement", "Data Management", "Max(R$200K, students × R$40)", "dataManagement"),
    _drv(_E, "parentEngagement", "Parent Engagement", "Max(R$150K, students × R$60)", "parentEngagement"),
    _drv(_E, "contentDevelopment", "Content Development", "Revenue × 4%", "contentDevelopment", _RW),
    # Business
    _drv(_B, "badDebt", "Bad Debt Provision", "Revenue × 2%", "badDebt", _RW),
    _drv(_B, "paymentProcessing", "Payment Processing Fees", "Revenue × 2.5%", "paymentProcessing", _RW),
    _drv(_B, "platformRD", "Platform R&D", "Revenue × 6%", "platformRD", _RW),
    # Other
    _drv(_X, "legal", "Legal & Compliance", "Max(R$500K, Revenue × 0.3%)", "legal"),
    _drv(_X, "insurance", "Insurance", "R$100K × inflation", "insurance"),
    _drv(_X, "travel", "Travel & Logistics", "Max(R$300K, (franchises + adoptionStudents÷5000) × R$50K)", "travel"),
    _drv(_X, "workingCapital", "Working Capital Reserve", "Revenue × 1%", "workingCapital"),
    _drv(_X, "contingency", "Contingency", "Revenue × 0.5%", "contingency"),
    # Capex
    _drv(_C, "amount", "CAPEX (Building, Equipment, Tech)", "Y0: R$20M, Y1: R$5M, then maintenance", "capex", Pattern.CONSTRUCTION),
    _drv(_C, "architectPayment", "Architect Project Payments", "R$100K upfront + R$45.8K/mo through Y2", "architectPayment", Pattern.ARCHITECT),
    # Debt service
    _debt("bridgeInterest", "Bridge Loan Interest", "R$10M × 2%/mo × 9 months (Jan-Oct 2026)", Pattern.OCTOBER_LUMP),
    _debt("bridgeRepayment", "Bridge Loan Repayment", "R$10M principal in October 2026", Pattern.OCTOBER_LUMP),
    _debt("dspInterest", "Desenvolve SP Interest", "R$30M × 8.4%/year (grace, then declining)", Pattern.LOAN_INTEREST),
    _debt("innovationInterest", "Innovation Loan Interest", "R$15M × 8.4%/year (grace, then declining)", Pattern.LOAN_INTEREST),
    _debt("principal", "Principal Payments", "R$45M ÷ 5 = R$9M/year from Y4", Pattern.AMORTIZATION),
]

CATEGORIES: Dict[str, ExpenseCategory] = {c.id: c for c in _CATEGORY_LIST}


def get_category(category_id) -> ExpenseCategory:
    try:
        return CATEGORIES[category_id]
    except (KeyError, TypeError):
        raise ConfigurationError(f"unknown expense category {category_id!r}") from None


def find_category(category_id) -> Optional[ExpenseCategory]:
    return CATEGORIES.get(category_id) if isinstance(category_id, str) else None


def categories_in(section) -> List[ExpenseCategory]:
    section = Section(section)
    return [c for c in _CATEGORY_LIST if c.section is section]


def list_categories():
    return [{"id": c.id, "label": c.label, "section": c.section.value,
             "formula": c.formula, "sourced_from_roster": c.sourced_from_roster}
            for c in _CATEGORY_LIST]
