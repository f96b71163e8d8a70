"""
Line items behind a monthly expense value.

RosterItem rows itemize staff categories (role x quantity x salary);
SplitItem rows itemize everything else as percentage splits. The edit
helpers return new lists and never touch the input list.
"""
from dataclasses import dataclass, asdict, replace
from typing import List, Optional, Union

from errors import as_number, OutOfRangeError


@dataclass
class RosterItem:
    role: str
    quantity: int
    monthlySalary: float
    department: str = ""
    type: str = ""
    total: float = 0.0
    isOverhead: bool = False

    @property
    def value(self):
        return as_number(self.total)

    def to_dict(self):
        return asdict(self)


@dataclass
class SplitItem:
    item: str
    category: str
    percentage: float
    amount: float
    note: Optional[str] = None

    @property
    def value(self):
        return as_number(self.amount)

    def to_dict(self):
        d = asdict(self)
        if d["note"] is None: del d["note"]
        return d


LineItem = Union[RosterItem, SplitItem]


def _quantity(value):
    return max(0, int(as_number(value)))


def roster_item(role, quantity, salary, department="", type_="", is_overhead=False):
    q = _quantity(quantity); s = as_number(salary)
    return RosterItem(role, q, s, department, type_, q * s, is_overhead)


def line_item_from_dict(d) -> LineItem:
    if "role" in d:
        return RosterItem(role=d["role"], quantity=_quantity(d.get("quantity")),
                          monthlySalary=as_number(d.get("monthlySalary")),
                          department=d.get("department", ""), type=d.get("type", ""),
                          total=as_number(d.get("total")), isOverhead=bool(d.get("isOverhead", False)))
    return SplitItem(item=d.get("item", ""), category=d.get("category", ""),
                     percentage=as_number(d.get("percentage")), amount=as_number(d.get("amount")),
                     note=d.get("note"))


def coerce_items(items) -> List[LineItem]:
    return [i if isinstance(i, (RosterItem, SplitItem)) else line_item_from_dict(i) for i in items]


def items_total(items):
    return sum(i.value for i in coerce_items(items))


def items_to_records(items):
    return [i.to_dict() for i in coerce_items(items)]


# -- Edit helpers --

def _check_index(items, index):
    if not 0 <= index < len(items):
        raise OutOfRangeError(f"item index {index} outside 0..{len(items) - 1}")

def update_roster_item(items, index, field_name, value):
    """Set quantity or monthlySalary on one roster row and recompute its total."""
    items = coerce_items(items); _check_index(items, index)
    it = items[index]
    if field_name == "quantity": it = replace(it, quantity=_quantity(value))
    elif field_name == "monthlySalary": it = replace(it, monthlySalary=as_number(value))
    else: it = replace(it, **{field_name: value})
    items[index] = replace(it, total=it.quantity * it.monthlySalary)
    return items

def update_split_item(items, index, field_name, value):
    """Edit one split row. Percentages are labels only; amount is not rederived."""
    items = coerce_items(items); _check_index(items, index)
    if field_name in ("amount", "percentage"): value = as_number(value)
    items[index] = replace(items[index], **{field_name: value})
    return items

def add_item(items, item):
    items = coerce_items(items)
    items.append(item if isinstance(item, (RosterItem, SplitItem)) else line_item_from_dict(item))
    return items

def remove_item(items, index):
    items = coerce_items(items); _check_index(items, index)
    del items[index]
    return items
