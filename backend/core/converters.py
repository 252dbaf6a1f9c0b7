from typing import List, Tuple

from core.stock import CategoryRollup, StatusCounts, classify
from schemas.inventory import (
    CategoryDetail,
    CategorySummary,
    ItemOut,
    ItemRead,
    ItemWithCategory,
    ItemWithCategoryOut,
    StatusCountsOut,
)


def item_to_schema(item) -> ItemOut:
    """ORM item (or ItemRead) to the API shape with its derived status"""
    data = ItemRead.model_validate(item).model_dump()
    return ItemOut(**data, status=classify(item))


def item_with_category_to_schema(item: ItemWithCategory) -> ItemWithCategoryOut:
    return ItemWithCategoryOut(**item.model_dump(), status=classify(item))


def category_to_summary(category, rollup: CategoryRollup) -> CategorySummary:
    return CategorySummary(
        **category.to_schema,
        item_count=rollup.item_count,
        low_stock_count=rollup.low_stock_count,
    )


def category_to_detail(category, rollup: CategoryRollup, counts: StatusCounts) -> CategoryDetail:
    return CategoryDetail(
        **category.to_schema,
        item_count=rollup.item_count,
        low_stock_count=rollup.low_stock_count,
        status_counts=StatusCountsOut(
            in_stock=counts.in_stock,
            low_stock=counts.low_stock,
            out_of_stock=counts.out_of_stock,
        ),
    )


def summaries(pairs: List[Tuple]) -> List[CategorySummary]:
    return [category_to_summary(c, r) for c, r in pairs]
