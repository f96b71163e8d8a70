import pytest

from categories import (CATEGORIES, OPERATING_SECTIONS, Breakdown, Pattern, Section, Source,
                        categories_in, find_category, get_category, list_categories)
from distributor import _PATTERNS
from errors import ConfigurationError


def test_registry_size_and_sections():
    assert len(CATEGORIES) == 28
    counts = {s: len(categories_in(s)) for s in Section}
    assert counts == {Section.STAFF: 4, Section.OPERATIONAL: 3, Section.EDUCATIONAL: 6,
                      Section.BUSINESS: 3, Section.OTHER: 5, Section.CAPEX: 2,
                      Section.DEBT_SERVICE: 5}


def test_ids_are_section_prefixed():
    for cid, cat in CATEGORIES.items():
        assert cid == f"{cat.section.value}.{cat.key}"


def test_every_pattern_has_a_distribution_rule():
    assert set(_PATTERNS) == set(Pattern)


def test_staff_categories_use_rosters():
    for cat in categories_in("staff"):
        assert cat.source is Source.ROSTER
        assert cat.breakdown is Breakdown.ROSTER
        assert cat.sourced_from_roster
    assert not get_category("operational.marketing").sourced_from_roster


def test_revenue_weighted_group():
    weighted = {c.id for c in CATEGORIES.values() if c.pattern is Pattern.REVENUE_WEIGHTED}
    assert weighted == {"operational.technology", "operational.marketing",
                        "educational.contentDevelopment", "business.badDebt",
                        "business.paymentProcessing", "business.platformRD"}


def test_operating_sections_exclude_capex_and_debt():
    assert Section.CAPEX not in OPERATING_SECTIONS
    assert Section.DEBT_SERVICE not in OPERATING_SECTIONS


def test_unknown_id():
    with pytest.raises(ConfigurationError):
        get_category("operational.unknown")
    with pytest.raises(KeyError):
        get_category(None)
    assert find_category("operational.unknown") is None
    assert find_category(3) is None


def test_list_categories_rows():
    rows = list_categories()
    assert rows[0]["id"] == "staff.corporate"
    assert rows[0]["sourced_from_roster"] is True
