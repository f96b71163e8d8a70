import pytest

from errors import OutOfRangeError
from line_items import (RosterItem, SplitItem, add_item, items_total, line_item_from_dict,
                        remove_item, roster_item, update_roster_item, update_split_item)


@pytest.fixture
def roster():
    return [roster_item("CEO", 1, 80000), roster_item("Analyst", 2, 8000)]


def test_roster_item_total():
    assert roster_item("Teacher", 3, 12000).total == 36000


def test_update_roster_quantity_recomputes_total(roster):
    updated = update_roster_item(roster, 1, "quantity", 5)
    assert updated[1].total == 40000
    assert roster[1].total == 16000


def test_update_roster_salary(roster):
    updated = update_roster_item(roster, 0, "monthlySalary", "90000")
    assert updated[0].total == 90000


def test_update_split_keeps_percentage_as_label():
    items = [SplitItem("Cloud", "Infrastructure", 25, 250.0)]
    updated = update_split_item(items, 0, "amount", 400)
    assert updated[0].amount == 400
    assert updated[0].percentage == 25


def test_add_and_remove(roster):
    grown = add_item(roster, {"role": "Intern", "quantity": 1, "monthlySalary": 2000, "total": 2000})
    assert len(grown) == 3 and isinstance(grown[2], RosterItem)
    shrunk = remove_item(grown, 0)
    assert [i.role for i in shrunk] == ["Analyst", "Intern"]
    with pytest.raises(OutOfRangeError):
        remove_item(shrunk, 5)


def test_items_total_mixes_kinds():
    items = [roster_item("CEO", 1, 1000), SplitItem("Fees", "Bank", 10, 250.0),
             {"item": "Bad", "category": "x", "percentage": 0, "amount": "n/a"}]
    assert items_total(items) == 1250


def test_from_dict():
    item = line_item_from_dict({"item": "Cloud", "category": "Infra", "percentage": 25, "amount": 10})
    assert item == SplitItem("Cloud", "Infra", 25.0, 10.0)
    assert "note" not in item.to_dict()


def test_negative_quantities_clamped_to_zero(roster):
    assert roster_item("Ghost", -2, 1000).quantity == 0
    updated = update_roster_item(roster, 0, "quantity", -3)
    assert updated[0].quantity == 0 and updated[0].total == 0
    item = line_item_from_dict({"role": "Ghost", "quantity": -1, "monthlySalary": 10})
    assert item.quantity == 0
