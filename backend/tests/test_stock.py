import copy
import uuid

from core.stock import (
    CategoryRollup,
    StockLevel,
    StockStatus,
    aggregate_low_stock,
    classify,
    filter_by_name,
    filter_low_stock,
    is_low_stock,
    rollup,
    rollup_categories,
    search_items,
    status_counts,
    total_items,
)


def item(q, m, **extra):
    return {"quantity": q, "min_stock": m, **extra}


def test_classify_covers_every_level_pair():
    for q in range(0, 8):
        for m in range(0, 8):
            status = classify(item(q, m))
            assert status in set(StockStatus)
            if q == 0:
                assert status is StockStatus.OUT_OF_STOCK
            elif q <= m:
                assert status is StockStatus.LOW_STOCK
            else:
                assert status is StockStatus.IN_STOCK


def test_zero_quantity_with_zero_minimum_is_out_of_stock():
    assert classify(item(0, 0)) is StockStatus.OUT_OF_STOCK
    # the two-way predicate still counts it as low
    assert is_low_stock(item(0, 0))


def test_classify_reads_attributes():
    class Row:
        quantity = 4
        min_stock = 4

    assert classify(Row()) is StockStatus.LOW_STOCK


def test_rollup_counts_out_of_stock_as_low():
    items = [item(0, 2), item(3, 5), item(10, 2), item(0, 0)]
    result = rollup(None, items)
    out_count = sum(1 for i in items if classify(i) is StockStatus.OUT_OF_STOCK)

    assert result == CategoryRollup(item_count=4, low_stock_count=3)
    assert result.low_stock_count >= out_count


def test_rollup_of_empty_category():
    assert rollup(None, []) == CategoryRollup(item_count=0, low_stock_count=0)


def test_filter_low_stock_orders_by_quantity():
    items = [item(3, 5, name="a"), item(0, 2, name="b"), item(10, 2, name="c")]
    snapshot = copy.deepcopy(items)

    result = filter_low_stock(items)

    assert [i["name"] for i in result] == ["b", "a"]
    assert items == snapshot


def test_filter_low_stock_keeps_fetch_order_on_ties():
    items = [item(2, 5, name="first"), item(1, 1, name="x"), item(2, 2, name="second")]
    assert [i["name"] for i in filter_low_stock(items)] == ["x", "first", "second"]


def test_rollup_categories_skips_levels_without_category():
    a, b = uuid.uuid4(), uuid.uuid4()
    categories = [{"id": a, "name": "A"}, {"id": b, "name": "B"}]
    levels = [
        StockLevel(category_id=a, quantity=0, min_stock=1),
        StockLevel(category_id=a, quantity=9, min_stock=1),
        StockLevel(category_id=uuid.uuid4(), quantity=0, min_stock=5),
    ]

    pairs = rollup_categories(categories, levels)

    assert [c["name"] for c, _ in pairs] == ["A", "B"]
    assert pairs[0][1] == CategoryRollup(item_count=2, low_stock_count=1)
    assert pairs[1][1] == CategoryRollup(item_count=0, low_stock_count=0)
    assert aggregate_low_stock(pairs) == 1
    assert total_items(pairs) == 2


def test_aggregate_low_stock_accepts_bare_rollups():
    rollups = [CategoryRollup(3, 2), CategoryRollup(1, 1), CategoryRollup(0, 0)]
    assert aggregate_low_stock(rollups) == 3


def test_status_counts():
    counts = status_counts([item(0, 1), item(1, 1), item(2, 1), item(5, 1)])
    assert (counts.in_stock, counts.low_stock, counts.out_of_stock) == (2, 1, 1)


def test_search_matches_item_or_category_name():
    items = [
        item(1, 0, name="Burner Head", category_name="Gas Stove Parts"),
        item(1, 0, name="Coupler", category_name="Mixer Parts"),
        item(1, 0, name="Orphan Knob", category_name=None),
    ]
    assert [i["name"] for i in search_items(items, "burner")] == ["Burner Head"]
    assert [i["name"] for i in search_items(items, "MIXER")] == ["Coupler"]
    assert [i["name"] for i in search_items(items, "knob")] == ["Orphan Knob"]
    assert search_items(items, "parts") == items[:2]


def test_blank_search_returns_nothing():
    items = [item(1, 0, name="Burner Head")]
    assert search_items(items, "") == []
    assert search_items(items, "   ") == []
    assert search_items(items, None) == []


def test_filter_by_name_keeps_all_for_empty_term():
    items = [item(1, 0, name="Knob"), item(1, 0, name="Coupler")]
    assert filter_by_name(items, "") == items
    assert filter_by_name(items, "kn") == items[:1]
