import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.converters import item_with_category_to_schema, summaries
from core.errors import InventoryError, http_error
from core.stock import aggregate_low_stock, filter_low_stock, rollup_categories, search_items, total_items
from db.repository import InventoryRepository, get_repository
from schemas.inventory import DashboardOut, ItemWithCategoryOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(repo: InventoryRepository = Depends(get_repository)):
    """Category cards with item / low-stock counts, plus the totals for the alert banner"""
    try:
        categories = await repo.list_categories()
        levels = await repo.list_stock_levels()
    except InventoryError as e:
        logger.warning("Loading dashboard failed: %s", e)
        raise http_error(e)
    pairs = rollup_categories(categories, levels)
    return DashboardOut(
        categories=summaries(pairs),
        category_count=len(categories),
        item_count=total_items(pairs),
        low_stock_count=aggregate_low_stock(pairs),
    )


@router.get("/dashboard/search", response_model=List[ItemWithCategoryOut])
async def search(
    q: Optional[str] = Query(None, description="Matches item or category name"),
    repo: InventoryRepository = Depends(get_repository),
):
    if not (q or "").strip():
        return []
    try:
        items = await repo.list_items()
    except InventoryError as e:
        raise http_error(e)
    return [item_with_category_to_schema(i) for i in search_items(items, q)]


@router.get("/low-stock", response_model=List[ItemWithCategoryOut])
async def low_stock(repo: InventoryRepository = Depends(get_repository)):
    """Items at or below their minimum, emptiest first"""
    try:
        items = await repo.list_items()
    except InventoryError as e:
        logger.warning("Loading low-stock items failed: %s", e)
        raise http_error(e)
    return [item_with_category_to_schema(i) for i in filter_low_stock(items)]
