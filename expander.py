"""
Item expander: turns one month's expense value into line items.

Staff categories expand into an inflation-adjusted roster which is then
reconciled to the target (reserve line for a shortfall, proportional
salary scaling for an overshoot). Other categories split the target by a
fixed percentage table.
"""
import math
import logging
from typing import List

from categories import Breakdown, find_category
from config import ROSTER_TOLERANCE
from drivers import adoption_students_for, franchise_count_for
from errors import as_number, check_month, check_year
from line_items import LineItem, RosterItem, SplitItem, roster_item

logger = logging.getLogger(__name__)

SALARY_INFLATION = 0.05
RESERVE_ROLE = "Reserve & Benefits"
TECH_BRIDGE_BUDGET = 2000000.0
TECH_BRIDGE_MONTHS = range(1, 7)


def inflation_multiplier(year_index):
    return (1 + SALARY_INFLATION) ** max(0, year_index - 1)

def adoption_support_staff(year_index):
    schools = math.ceil(adoption_students_for(year_index) / 500)
    return math.ceil(schools / 20)


# ── Rosters: (role, quantity, base monthly salary, department, type) ──

def _corporate(y):
    return [("CEO",1,80000,"Executive","Leadership"), ("CFO",1,65000,"Executive","Leadership"),
            ("COO",1,60000,"Executive","Leadership"), ("CTO",1,55000,"Technology","Leadership"),
            ("CMO",1,50000,"Marketing","Leadership"),
            ("HR Director",1,35000,"Human Resources","Management"),
            ("Legal Counsel",1,40000,"Legal","Professional"),
            ("Finance Manager",2,18000,"Finance","Management"),
            ("HR Analyst",2,8000,"Human Resources","Analyst"),
            ("Administrative Assistant",3,5000,"Admin","Support"),
            ("IT Support",2,7000,"Technology","Support"),
            ("Receptionist",1,3500,"Admin","Support")]

def _flagship(y):
    t = 30 if y <= 1 else 50
    share = lambda f: math.ceil(t * f)
    return [("School Director",1,45000,"Administration","Leadership"),
            ("Academic Coordinator",2,25000,"Academic","Management"),
            ("AI/Tech Lead Teacher",3,18000,"Teaching - STEM","Teacher"),
            ("Math Teacher",share(0.15),12000,"Teaching - STEM","Teacher"),
            ("Science Teacher",share(0.15),12000,"Teaching - STEM","Teacher"),
            ("Portuguese Teacher",share(0.12),11000,"Teaching - Languages","Teacher"),
            ("English Teacher",share(0.12),13000,"Teaching - Languages","Teacher"),
            ("History/Geography Teacher",share(0.10),10000,"Teaching - Humanities","Teacher"),
            ("Arts/Music Teacher",share(0.08),9000,"Teaching - Arts","Teacher"),
            ("Physical Education Teacher",share(0.08),8500,"Teaching - PE","Teacher"),
            ("Teaching Assistant",share(0.20),4000,"Teaching Support","Support"),
            ("School Psychologist",2,12000,"Student Services","Professional"),
            ("Librarian",1,6000,"Academic Support","Support"),
            ("Lab Technician",2,5500,"STEM Support","Support"),
            ("Administrative Staff",4,4500,"Administration","Support"),
            ("Security",3,3000,"Operations","Support"),
            ("Cleaning Staff",6,2500,"Operations","Support"),
            ("Cafeteria Staff",4,2800,"Operations","Support")]

def _franchise_support(y):
    fc = franchise_count_for(y)
    if fc == 0: return []
    return [("Franchise Director",1,40000,"Franchise Ops","Leadership"),
            ("Regional Manager",math.ceil(fc/8),25000,"Franchise Ops","Management"),
            ("Training Coordinator",math.ceil(fc/6),15000,"Training","Specialist"),
            ("Quality Auditor",math.ceil(fc/10),12000,"Quality","Specialist"),
            ("Franchise Support Analyst",math.ceil(fc/4),8000,"Support","Analyst"),
            ("Implementation Specialist",math.ceil(fc/8),10000,"Implementation","Specialist")]

def _adoption_support(y):
    s = adoption_support_staff(y)
    if s == 0: return []
    return [("Adoption Director",1,35000,"Adoption Ops","Leadership"),
            ("Account Manager",math.ceil(s/2.5),12000,"Account Management","Management"),
            ("Implementation Specialist",math.ceil(s*3/10),10000,"Implementation","Specialist"),
            ("Technical Support",math.ceil(s/5),8000,"Support","Support"),
            ("Training Specialist",math.ceil(s/10),9000,"Training","Specialist")]

ROSTERS = {"staff.corporate": _corporate, "staff.flagship": _flagship,
           "staff.franchiseSupport": _franchise_support, "staff.adoptionSupport": _adoption_support}


# ── Split tables: (item, category, percentage[, note]) ──

SPLITS = {
    "operational.technology": [
        ("Cloud Infrastructure (AWS/GCP)","Infrastructure",25), ("AI/ML Services (OpenAI, etc)","AI Services",20),
        ("Learning Management System","Platform",15), ("Database Services","Infrastructure",10),
        ("CDN & Media Streaming","Infrastructure",8), ("Security & Monitoring","Security",7),
        ("Software Licenses (Office, etc)","Licenses",5), ("Development Tools","Tools",5),
        ("Technical Support Tools","Support",5)],
    "operational.marketing": [
        ("Digital Advertising (Google, Meta)","Digital",30), ("Content Marketing & SEO","Content",15),
        ("Social Media Management","Digital",10), ("Events & Conferences","Events",12),
        ("PR & Communications","PR",8), ("Brand & Creative","Brand",8),
        ("Sales Collateral & Materials","Sales",7), ("Partnerships & Sponsorships","Partnerships",5),
        ("Marketing Tools & Analytics","Tools",5)],
    "operational.facilities": [
        ("Building Rent/Lease","Rent",40), ("Electricity","Utilities",15), ("Water & Sewage","Utilities",5),
        ("Internet & Communications","Utilities",8), ("Maintenance & Repairs","Maintenance",12),
        ("Security Services","Security",8), ("Cleaning Services","Services",6),
        ("Property Insurance","Insurance",4), ("Waste Management","Services",2)],
    "educational.teacherTraining": [
        ("AI & Technology Training Programs","Training",25), ("Pedagogy & Methodology Workshops","Training",20),
        ("External Certifications","Certification",15), ("Training Materials & Resources","Materials",12),
        ("Guest Speakers & Experts","External",10), ("Online Learning Platforms","Platform",8),
        ("Conference Attendance","Events",5), ("Training Facility Costs","Facilities",5)],
    "educational.qualityAssurance": [
        ("Assessment Development","Assessment",25), ("Quality Audits","Audit",20),
        ("Student Outcome Tracking","Analytics",18), ("Curriculum Review","Review",15),
        ("External Evaluations","External",12), ("QA Tools & Software","Tools",10)],
    "educational.regulatoryCompliance": [
        ("MEC Compliance & Reporting","Government",30), ("Accreditation Fees","Accreditation",20),
        ("LGPD/Data Privacy Compliance","Data Privacy",18), ("Educational Standards Audit","Audit",15),
        ("Legal Consulting","Legal",10), ("Documentation & Filing","Admin",7)],
    "educational.dataManagement": [
        ("Student Information System","System",25), ("Data Storage & Backup","Infrastructure",20),
        ("Analytics & Reporting Tools","Analytics",18), ("Data Security","Security",15),
        ("Integration Services","Integration",12), ("Data Quality Management","Quality",10)],
    "educational.parentEngagement": [
        ("Parent Portal Platform","Platform",25), ("Communication Tools (App, SMS)","Communication",20),
        ("Parent Events & Meetings","Events",18), ("Parent Education Programs","Programs",15),
        ("Feedback & Survey Systems","Feedback",12), ("Support Staff for Parents","Support",10)],
    "educational.contentDevelopment": [
        ("Curriculum Writers","Content Creation",25), ("Instructional Designers","Design",20),
        ("Video Production","Media",18), ("Interactive Content Development","Interactive",15),
        ("AI Content Tools","AI",12), ("Content Review & QA","Quality",10)],
    "business.badDebt": [
        ("Tuition Default Provision","Tuition",60), ("Kit/Materials Default","Materials",20),
        ("Franchise Fee Default Reserve","Franchise",10), ("Collection Agency Fees","Collection",10)],
    "business.paymentProcessing": [
        ("Credit Card Fees (2.5%)","Card Fees",50), ("PIX/Bank Transfer Fees","Bank Fees",15),
        ("Boleto Processing","Boleto",15), ("Payment Gateway Fees","Gateway",12),
        ("Chargeback Handling","Chargebacks",8)],
    "business.platformRD": [
        ("Software Development Team","Development",40), ("AI/ML Research & Development","AI R&D",25),
        ("UX/UI Design","Design",12), ("Quality Assurance & Testing","QA",10),
        ("DevOps & Infrastructure","DevOps",8), ("Research Tools & Resources","Tools",5)],
    "other.legal": [
        ("External Legal Counsel","Legal",35), ("Contract Management","Contracts",20),
        ("Intellectual Property","IP",15), ("Regulatory Filings","Regulatory",12),
        ("Compliance Software","Software",10), ("Legal Training","Training",8)],
    "other.insurance": [
        ("General Liability Insurance","Liability",30), ("Professional Liability (E&O)","Professional",25),
        ("Property Insurance","Property",20), ("Cyber Insurance","Cyber",15),
        ("Workers' Compensation","Workers",10)],
    "other.travel": [
        ("Airfare","Transportation",35), ("Accommodation","Lodging",25),
        ("Ground Transportation","Transportation",15), ("Meals & Per Diem","Meals",12),
        ("Event Registration","Events",8), ("Travel Insurance","Insurance",5)],
    "other.workingCapital": [
        ("Operating Cash Reserve","Cash",40), ("Accounts Receivable Buffer","AR",25),
        ("Inventory/Materials Buffer","Inventory",20), ("Seasonal Cash Flow Buffer","Seasonal",15)],
    "other.contingency": [
        ("Emergency Fund","Emergency",40), ("Unexpected Repairs","Repairs",25),
        ("Legal Contingencies","Legal",20), ("Market Disruption Buffer","Market",15)],
    "debtService.bridgeInterest": [
        ("Bridge Loan Interest (2%/month)","Interest",100,"R$10M × 2% × 9 months = R$1.8M")],
    "debtService.bridgeRepayment": [
        ("Principal Repayment","Principal",100,"Full repayment in October 2026")],
    "debtService.dspInterest": [
        ("Quarterly Interest Payment","Interest",100,"R$30M × 8.4%/year = R$2.52M/year (R$630K/quarter)")],
    "debtService.innovationInterest": [
        ("Quarterly Interest Payment","Interest",100,"R$15M × 8.4%/year = R$1.26M/year (R$315K/quarter)")],
    "debtService.principal": [
        ("Desenvolve SP Principal","DSP",67,"R$6M/year (R$30M over 5 years)"),
        ("Innovation Loan Principal","Innovation",33,"R$3M/year (R$15M over 5 years)")],
}

CAPEX_BUILD_SPLIT = [
    ("Building Renovation/Construction","Construction",45), ("Classroom Equipment & Furniture","Equipment",15),
    ("Technology Infrastructure","Technology",15), ("Science & AI Labs","Labs",12),
    ("Sports & Recreation Facilities","Sports",8), ("Safety & Security Systems","Security",5)]
CAPEX_MAINTENANCE_SPLIT = [
    ("Equipment Upgrades","Equipment",35), ("Technology Refresh","Technology",30),
    ("Facility Improvements","Facilities",20), ("New Lab Equipment","Labs",15)]
ARCHITECT_SPLIT = [
    ("Monthly Project Fee","Project",70), ("Site Supervision","Supervision",20),
    ("Documentation","Documentation",10)]


# ── Roster reconciliation ───────────────────────────────────

def base_roster(category_id, year_index) -> List[RosterItem]:
    infl = inflation_multiplier(year_index)
    return [roster_item(role, q, round(sal * infl), dept, typ)
            for role, q, sal, dept, typ in ROSTERS[category_id](year_index)]

def natural_roster_total(category_id, year_index):
    """Unscaled monthly roster cost for a staff category."""
    return sum(i.total for i in base_roster(category_id, year_index))

def reconcile_roster(items, month_value):
    actual = sum(i.total for i in items)
    adjustment = month_value - actual
    if month_value <= 0 or abs(adjustment) <= ROSTER_TOLERANCE:
        return items
    if adjustment > 0:
        return items + [RosterItem(RESERVE_ROLE, 1, adjustment, "Overhead", "Reserve",
                                   adjustment, isOverhead=True)]
    factor = month_value / actual
    return [RosterItem(i.role, i.quantity, i.monthlySalary * factor, i.department, i.type,
                       i.quantity * i.monthlySalary * factor, i.isOverhead) for i in items]


# ── Splits ──────────────────────────────────────────────────

def _split(rows, base):
    items = []
    for row in rows:
        name, cat, pct = row[:3]
        items.append(SplitItem(name, cat, pct, base * pct / 100, row[3] if len(row) > 3 else None))
    residual = base - sum(i.amount for i in items)
    if items and abs(residual) > 1e-6:
        top = max(range(len(items)), key=lambda k: items[k].percentage)
        items[top].amount += residual
    return items

def _split_items(category_id, y, m, month_value):
    if category_id == "operational.technology" and y == 0:
        if m in TECH_BRIDGE_MONTHS:
            return _split(SPLITS[category_id], TECH_BRIDGE_BUDGET / len(TECH_BRIDGE_MONTHS))
        return [SplitItem("No technology spend", "Bridge", 0, 0.0,
                          "Y0 technology is funded Feb-Jul from the bridge loan")]
    if category_id == "capex.amount":
        return _split(CAPEX_BUILD_SPLIT if y == 0 else CAPEX_MAINTENANCE_SPLIT, month_value)
    if category_id == "capex.architectPayment":
        if y == 0 and m == 0:
            return [SplitItem("Upfront Design Fee", "Design", 100, 100000.0)]
        return _split(ARCHITECT_SPLIT, month_value)
    return _split(SPLITS[category_id], month_value)


def expand(category_id, year_index, month_index, month_value, overrides=None) -> List[LineItem]:
    """Line items for one category/year/month; [] when the category has no breakdown."""
    y = check_year(year_index); m = check_month(month_index)
    if overrides is not None and find_category(category_id) is not None:
        stored = overrides.items(category_id, y, m)
        if stored is not None:
            return stored
    cat = find_category(category_id)
    if cat is None:
        logger.debug("No breakdown for %r", category_id)
        return []
    value = as_number(month_value, f"{category_id} Y{y} M{m}")
    if cat.breakdown is Breakdown.ROSTER:
        return reconcile_roster(base_roster(category_id, y), value)
    return _split_items(category_id, y, m, value)
