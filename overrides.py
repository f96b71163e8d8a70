"""
Override store: user edits keyed by (category id, year index).

Each entry carries twelve monthly values, their annual total and a
month -> line-item list layer. Entries live for the session only. All
mutations and snapshot reads go through one lock so a reader never sees
the annual, monthly and item layers half merged.
"""
import logging
import threading
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from categories import get_category
from errors import OutOfRangeError, as_number, check_month, check_year
from line_items import LineItem, coerce_items, items_to_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverrideKey:
    category_id: str
    year_index: int

    def __str__(self):
        return f"{self.category_id}_{self.year_index}"


@dataclass
class OverrideEntry:
    monthly_values: List[float]
    annual_total: float
    item_overrides: Dict[int, List[LineItem]] = field(default_factory=dict)


def _monthly(values):
    values = list(values)
    if len(values) != 12:
        raise OutOfRangeError(f"monthly values must have 12 entries, got {len(values)}")
    return [as_number(v, "monthly override") for v in values]


def _month_key(m):
    try:
        return check_month(int(m))
    except (TypeError, ValueError):
        raise OutOfRangeError(f"month index {m!r} outside 0..11") from None


def _item_layer(item_overrides):
    return {_month_key(m): coerce_items(items) for m, items in (item_overrides or {}).items()}


class OverrideStore:

    def __init__(self):
        self._entries: Dict[OverrideKey, OverrideEntry] = {}
        self._lock = threading.RLock()

    def _key(self, category_id, year_index):
        get_category(category_id)
        return OverrideKey(category_id, check_year(year_index))

    # -- reads --

    def get(self, category_id, year_index) -> Optional[OverrideEntry]:
        """Copy of the stored entry, or None when the expense is unmodified."""
        key = self._key(category_id, year_index)
        with self._lock:
            e = self._entries.get(key)
            return deepcopy(e) if e is not None else None

    def has(self, category_id, year_index):
        key = self._key(category_id, year_index)
        with self._lock:
            return key in self._entries

    def annual_total(self, category_id, year_index):
        e = self.get(category_id, year_index)
        return None if e is None else e.annual_total

    def monthly_values(self, category_id, year_index):
        e = self.get(category_id, year_index)
        return None if e is None else e.monthly_values

    def items(self, category_id, year_index, month_index):
        check_month(month_index)
        e = self.get(category_id, year_index)
        if e is None: return None
        return e.item_overrides.get(month_index)

    def modified_keys(self):
        with self._lock:
            return sorted(self._entries, key=lambda k: (k.category_id, k.year_index))

    def snapshot(self):
        with self._lock:
            return deepcopy(self._entries)

    def __len__(self):
        with self._lock:
            return len(self._entries)

    # -- writes --

    def set_annual_override(self, category_id, year_index, monthly_values, annual_total=None, item_overrides=None):
        """Replace the monthly/annual layer. The item layer is kept unless item_overrides is given.

        A missing annual_total is the sum of the monthly values.
        """
        key = self._key(category_id, year_index)
        mv = _monthly(monthly_values)
        total = sum(mv) if annual_total is None else as_number(annual_total, "annual total")
        new_items = deepcopy(_item_layer(item_overrides)) if item_overrides is not None else None
        with self._lock:
            prev = self._entries.get(key)
            if new_items is None:
                new_items = deepcopy(prev.item_overrides) if prev is not None else {}
            self._entries[key] = OverrideEntry(mv, total, new_items)
        logger.info("Annual override %s set: total=%.2f", key, total)
        return self.get(category_id, year_index)

    def set_item_override(self, category_id, year_index, month_index, items, new_total,
                          apply_to_rest_of_year=False, base_monthly_values=None):
        """Store an edited item list for one month, or that month through December.

        base_monthly_values seeds the monthly layer when no override exists
        yet; it is normally the computed distribution for the year.
        """
        key = self._key(category_id, year_index)
        check_month(month_index)
        items = coerce_items(items); total = as_number(new_total, "item total")
        with self._lock:
            prev = self._entries.get(key)
            if prev is not None:
                mv = list(prev.monthly_values); layer = deepcopy(prev.item_overrides)
            else:
                mv = _monthly(base_monthly_values) if base_monthly_values is not None else [0.0] * 12
                layer = {}
            months = range(month_index, 12) if apply_to_rest_of_year else [month_index]
            for m in months:
                mv[m] = total
                layer[m] = deepcopy(items)
            self._entries[key] = OverrideEntry(mv, sum(mv), layer)
        logger.info("Item override %s month %d%s set: total=%.2f", key, month_index,
                    " onwards" if apply_to_rest_of_year else "", total)
        return self.get(category_id, year_index)

    def reset(self, category_id, year_index):
        key = self._key(category_id, year_index)
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None: logger.info("Override %s reset", key)
        return removed is not None

    def clear(self):
        with self._lock:
            n = len(self._entries); self._entries.clear()
        logger.info("Cleared %d overrides", n)

    # -- export --

    def to_records(self):
        rows = []
        for key, e in self.snapshot().items():
            row = {"expense_id": key.category_id, "year_index": key.year_index,
                   "annual_total": e.annual_total,
                   "item_override_months": ",".join(str(m) for m in sorted(e.item_overrides))}
            for m, v in enumerate(e.monthly_values): row[f"m{m + 1:02d}"] = v
            rows.append(row)
        return rows

    def item_records(self):
        rows = []
        for key, e in self.snapshot().items():
            for m, items in sorted(e.item_overrides.items()):
                for rec in items_to_records(items):
                    rows.append({"expense_id": key.category_id, "year_index": key.year_index,
                                 "month_index": m, **rec})
        return rows
