"""
Stock classification.

Pure functions over item-like records: ORM rows, pydantic models or plain
dicts with ``quantity`` and ``min_stock``. Nothing here mutates its input.

Two predicates are in play and they differ on purpose:

- ``classify`` is three-way: OUT_OF_STOCK at 0 (even when min_stock is 0),
  LOW_STOCK for 0 < quantity <= min_stock, IN_STOCK above min_stock.
- ``is_low_stock`` is two-way (quantity <= min_stock) and includes
  out-of-stock items. Rollups, the alert banner and the low-stock list use it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple


class StockStatus(str, Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


@dataclass(frozen=True)
class CategoryRollup:
    item_count: int
    low_stock_count: int


@dataclass(frozen=True)
class StatusCounts:
    in_stock: int
    low_stock: int
    out_of_stock: int


@dataclass(frozen=True)
class StockLevel:
    """The slice of an item the dashboard rollups need."""
    category_id: Any
    quantity: int
    min_stock: int


def _field(record, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _levels(record) -> Tuple[int, int]:
    return int(_field(record, "quantity", 0) or 0), int(_field(record, "min_stock", 0) or 0)


def classify(item) -> StockStatus:
    quantity, min_stock = _levels(item)
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def is_low_stock(item) -> bool:
    quantity, min_stock = _levels(item)
    return quantity <= min_stock


def rollup(category, items: Iterable) -> CategoryRollup:
    """Counts for one category; ``category`` is accepted for symmetry and not inspected."""
    items = list(items)
    return CategoryRollup(
        item_count=len(items),
        low_stock_count=sum(1 for i in items if is_low_stock(i)),
    )


def rollup_categories(categories: Sequence, levels: Iterable) -> List[Tuple[Any, CategoryRollup]]:
    """Join stock levels onto categories, keeping the categories' order.

    Levels that point at a category not in ``categories`` are skipped.
    """
    by_category = {_field(c, "id"): [] for c in categories}
    for level in levels:
        bucket = by_category.get(_field(level, "category_id"))
        if bucket is not None:
            bucket.append(level)
    return [(c, rollup(c, by_category[_field(c, "id")])) for c in categories]


def aggregate_low_stock(rollups: Iterable) -> int:
    """Sum of low-stock counts; accepts rollups or (category, rollup) pairs."""
    return sum(_unwrap(r).low_stock_count for r in rollups)


def total_items(rollups: Iterable) -> int:
    return sum(_unwrap(r).item_count for r in rollups)


def _unwrap(r) -> CategoryRollup:
    if isinstance(r, tuple):
        return r[1]
    return r


def status_counts(items: Iterable) -> StatusCounts:
    in_stock = low = out = 0
    for item in items:
        status = classify(item)
        if status is StockStatus.OUT_OF_STOCK:
            out += 1
        elif status is StockStatus.LOW_STOCK:
            low += 1
        else:
            in_stock += 1
    return StatusCounts(in_stock=in_stock, low_stock=low, out_of_stock=out)


def filter_low_stock(items: Iterable) -> list:
    # sorted() is stable, so equal quantities keep fetch order
    return sorted(
        (i for i in items if is_low_stock(i)),
        key=lambda i: _levels(i)[0],
    )


def _category_name(item) -> Optional[str]:
    name = _field(item, "category_name")
    if name is not None:
        return name
    category = _field(item, "category")
    if category is None:
        return None
    return _field(category, "name")


def search_items(items: Iterable, term: Optional[str]) -> list:
    """Case-insensitive match on item name or category name; blank term matches nothing."""
    needle = (term or "").strip().lower()
    if not needle:
        return []
    out = []
    for item in items:
        name = (_field(item, "name") or "").lower()
        category_name = (_category_name(item) or "").lower()
        if needle in name or needle in category_name:
            out.append(item)
    return out


def filter_by_name(items: Iterable, term: Optional[str]) -> list:
    """Category page filter; an empty term keeps everything."""
    needle = (term or "").lower()
    return [i for i in items if needle in (_field(i, "name") or "").lower()]
