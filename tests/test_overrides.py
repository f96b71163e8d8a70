import pytest

from errors import ConfigurationError, OutOfRangeError
from line_items import SplitItem
from overrides import OverrideKey

ITEMS = [SplitItem("Counsel", "Legal", 100, 500.0)]


def test_key_string():
    assert str(OverrideKey("other.legal", 3)) == "other.legal_3"


def test_annual_override_roundtrip(store):
    store.set_annual_override("other.legal", 2, [10] * 12, 120)
    assert store.has("other.legal", 2)
    assert store.annual_total("other.legal", 2) == 120
    assert store.monthly_values("other.legal", 2) == [10] * 12
    assert not store.has("other.legal", 3)


def test_validation(store):
    with pytest.raises(OutOfRangeError):
        store.set_annual_override("other.legal", 2, [10] * 11, 110)
    with pytest.raises(OutOfRangeError):
        store.set_annual_override("other.legal", 11, [10] * 12, 120)
    with pytest.raises(ConfigurationError):
        store.set_annual_override("other.nope", 2, [10] * 12, 120)
    with pytest.raises(OutOfRangeError):
        store.set_item_override("other.legal", 2, 12, ITEMS, 500)


def test_annual_override_keeps_item_layer(store):
    store.set_item_override("other.legal", 2, 5, ITEMS, 500, base_monthly_values=[0] * 12)
    store.set_annual_override("other.legal", 2, [1] * 12, 12)
    assert store.items("other.legal", 2, 5) == ITEMS
    store.set_annual_override("other.legal", 2, [1] * 12, 12, item_overrides={})
    assert store.items("other.legal", 2, 5) is None


def test_single_month_item_override(store):
    base = [100.0] * 12
    entry = store.set_item_override("other.legal", 2, 3, ITEMS, 500, base_monthly_values=base)
    assert entry.monthly_values == [100] * 3 + [500] + [100] * 8
    assert entry.annual_total == pytest.approx(1600)
    assert set(entry.item_overrides) == {3}


def test_rest_of_year_propagation(store):
    store.set_item_override("other.legal", 2, 1, [SplitItem("Early", "x", 100, 7.0)], 7,
                            base_monthly_values=[100.0] * 12)
    entry = store.set_item_override("other.legal", 2, 6, ITEMS, 500, apply_to_rest_of_year=True)
    assert entry.monthly_values[:6] == [100, 7, 100, 100, 100, 100]
    assert entry.monthly_values[6:] == [500] * 6
    assert all(entry.item_overrides[m] == ITEMS for m in range(6, 12))
    assert entry.item_overrides[1][0].item == "Early"
    assert entry.annual_total == pytest.approx(sum(entry.monthly_values))


def test_unseeded_item_override_starts_from_zero(store):
    entry = store.set_item_override("other.legal", 2, 0, ITEMS, 500)
    assert entry.annual_total == 500


def test_stored_items_are_copies(store):
    items = [SplitItem("Counsel", "Legal", 100, 500.0)]
    store.set_item_override("other.legal", 2, 0, items, 500)
    items[0].amount = 1
    got = store.items("other.legal", 2, 0)
    got[0].amount = 2
    assert store.items("other.legal", 2, 0)[0].amount == 500


def test_reset_and_clear(store):
    store.set_annual_override("other.legal", 2, [1] * 12, 12)
    store.set_annual_override("other.travel", 4, [1] * 12, 12)
    assert [str(k) for k in store.modified_keys()] == ["other.legal_2", "other.travel_4"]
    assert store.reset("other.legal", 2) is True
    assert store.reset("other.legal", 2) is False
    assert len(store) == 1
    store.clear()
    assert len(store) == 0


def test_records(store):
    store.set_item_override("other.legal", 2, 3, ITEMS, 500, base_monthly_values=[0] * 12)
    rows = store.to_records()
    assert rows[0]["expense_id"] == "other.legal"
    assert rows[0]["m04"] == 500
    assert rows[0]["item_override_months"] == "3"
    assert store.item_records()[0]["month_index"] == 3


def test_mutations_are_logged(store, caplog):
    caplog.set_level("INFO", logger="overrides")
    store.set_annual_override("other.legal", 2, [1] * 12, 12)
    assert "other.legal_2" in caplog.text


def test_missing_annual_total_is_sum_of_months(store):
    entry = store.set_annual_override("other.legal", 2, [10] * 11 + [None])
    assert entry.annual_total == 110


def test_unusable_values_stored_as_zero(store):
    entry = store.set_annual_override("other.legal", 2, [float("nan"), "abc", None] + [1] * 9,
                                      float("inf"))
    assert entry.monthly_values == [0, 0, 0] + [1] * 9
    assert entry.annual_total == 0
    entry = store.set_item_override("other.legal", 2, 5, ITEMS, "abc")
    assert entry.monthly_values[5] == 0
    assert entry.annual_total == 8


@pytest.mark.parametrize("month", ["x", "1.5", None, 12])
def test_bad_item_layer_month_keys(store, month):
    with pytest.raises(OutOfRangeError):
        store.set_annual_override("other.legal", 2, [1] * 12, 12, item_overrides={month: ITEMS})


def test_string_month_key_accepted(store):
    store.set_annual_override("other.legal", 2, [1] * 12, 12, item_overrides={"3": ITEMS})
    assert store.items("other.legal", 2, 3) == ITEMS
