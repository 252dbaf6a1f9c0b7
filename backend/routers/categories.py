import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from core.converters import category_to_detail, item_to_schema
from core.errors import InventoryError, http_error
from core.stock import filter_by_name, rollup, status_counts
from db.repository import InventoryRepository, get_repository
from routers.images import read_upload
from schemas.inventory import (
    CategoryDetail,
    CategoryRead,
    DEFAULT_ICON,
    ItemOut,
    parse_category_form,
    parse_item_form,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[CategoryRead])
async def list_categories(repo: InventoryRepository = Depends(get_repository)):
    """All categories, oldest first"""
    try:
        categories = await repo.list_categories()
    except InventoryError as e:
        logger.warning("Listing categories failed: %s", e)
        raise http_error(e)
    return [CategoryRead(**c.to_schema) for c in categories]


@router.post("/", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    name: str = Form(""),
    icon: Optional[str] = Form(DEFAULT_ICON),
    image: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
):
    """Create a category; an optional picture is uploaded before the row is written."""
    try:
        form = parse_category_form(name=name, icon=icon)
        image_url = None
        submitted = await read_upload(image)
        if submitted:
            file_data, filename, content_type = submitted
            image_url = await repo.upload_image(file_data, filename, content_type=content_type, prefix="category-")
        category = await repo.create_category(form.name, form.icon, image_url)
    except InventoryError as e:
        logger.warning("Creating category failed: %s", e)
        raise http_error(e)
    return CategoryRead(**category.to_schema)


@router.get("/{category_id}", response_model=CategoryDetail)
async def get_category(category_id: UUID, repo: InventoryRepository = Depends(get_repository)):
    """Category header for the category page: rollup plus in/low/out counts"""
    try:
        category = await repo.get_category(category_id)
        items = await repo.list_items_by_category(category_id)
    except InventoryError as e:
        raise http_error(e)
    return category_to_detail(category, rollup(category, items), status_counts(items))


@router.put("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: UUID,
    name: str = Form(""),
    icon: Optional[str] = Form(DEFAULT_ICON),
    image: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
):
    """Edit a category. The current picture is kept unless a new one is sent."""
    try:
        form = parse_category_form(name=name, icon=icon)
        current = await repo.get_category(category_id)
        image_url = current.image_url
        submitted = await read_upload(image)
        if submitted:
            file_data, filename, content_type = submitted
            image_url = await repo.upload_image(file_data, filename, content_type=content_type, prefix="category-")
        await repo.update_category(category_id, {"name": form.name, "icon": form.icon, "image_url": image_url})
        category = await repo.get_category(category_id)
    except InventoryError as e:
        logger.warning("Updating category %s failed: %s", category_id, e)
        raise http_error(e)
    return CategoryRead(**category.to_schema)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: UUID, repo: InventoryRepository = Depends(get_repository)):
    """Delete a category and, through the FK cascade, all of its items."""
    try:
        await repo.delete_category(category_id)
    except InventoryError as e:
        logger.warning("Deleting category %s failed: %s", category_id, e)
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{category_id}/items", response_model=List[ItemOut])
async def list_category_items(
    category_id: UUID,
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    repo: InventoryRepository = Depends(get_repository),
):
    try:
        await repo.get_category(category_id)
        items = await repo.list_items_by_category(category_id)
    except InventoryError as e:
        raise http_error(e)
    return [item_to_schema(i) for i in filter_by_name(items, q)]


@router.post("/{category_id}/items", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    category_id: UUID,
    name: str = Form(""),
    quantity: str = Form(""),
    min_stock: str = Form(""),
    image: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
):
    """
    Add an item to a category.

    The form is validated before anything is written. A picture, when given,
    is uploaded first; an upload failure aborts the insert.
    """
    try:
        form = parse_item_form(name=name, quantity=quantity, min_stock=min_stock)
        await repo.get_category(category_id)
        image_url = None
        submitted = await read_upload(image)
        if submitted:
            file_data, filename, content_type = submitted
            image_url = await repo.upload_image(file_data, filename, content_type=content_type)
        item = await repo.create_item(category_id, form.name, form.quantity, form.min_stock, image_url)
    except InventoryError as e:
        logger.warning("Adding item to category %s failed: %s", category_id, e)
        raise http_error(e)
    return item_to_schema(item)
