import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from core.adjustments import ItemEditSession, adjust_quantity
from core.converters import item_with_category_to_schema
from core.errors import InventoryError, http_error
from core.stock import classify
from db.repository import InventoryRepository, get_repository
from routers.images import read_upload
from schemas.inventory import (
    ItemUpdate,
    ItemWithCategoryOut,
    QuantityAdjustRequest,
    QuantityAdjustResult,
    parse_form,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{item_id}", response_model=ItemWithCategoryOut)
async def get_item(item_id: UUID, repo: InventoryRepository = Depends(get_repository)):
    """Single item with its category's name and icon"""
    try:
        item = await repo.get_item(item_id)
    except InventoryError as e:
        raise http_error(e)
    return item_with_category_to_schema(item)


@router.put("/{item_id}", response_model=ItemWithCategoryOut)
async def update_item(
    item_id: UUID,
    name: str = Form(""),
    min_stock: str = Form(""),
    quantity: Optional[str] = Form(None),
    add: Optional[str] = Form(None),
    remove: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
):
    """
    Submit the item edit form.

    ``quantity`` replaces the working quantity (defaults to the stored one);
    ``add`` / ``remove`` are staged amounts applied to it in that order, with
    removal floored at 0. Nothing is written unless the whole form validates.
    """
    try:
        edit = await ItemEditSession.open(repo, item_id)
        edit.name = name
        edit.min_stock = min_stock
        if quantity is not None and quantity.strip():
            edit.quantity.set(parse_form(ItemUpdate, quantity=quantity).quantity)
        if add:
            edit.quantity.stage(add)
            edit.quantity.add()
        if remove:
            edit.quantity.stage(remove)
            edit.quantity.remove()

        submitted = await read_upload(image)
        content_type = None
        if submitted:
            file_data, filename, content_type = submitted
            submitted = (file_data, filename)
        await edit.commit(repo, image=submitted, content_type=content_type)
        item = await repo.get_item(item_id)
    except InventoryError as e:
        logger.warning("Updating item %s failed: %s", item_id, e)
        raise http_error(e)
    return item_with_category_to_schema(item)


@router.post("/{item_id}/adjust", response_model=QuantityAdjustResult)
async def adjust_item_quantity(
    item_id: UUID,
    payload: QuantityAdjustRequest,
    repo: InventoryRepository = Depends(get_repository),
):
    """+/- buttons on the list views. Returns the stored quantity after the change."""
    try:
        await adjust_quantity(repo, item_id, payload.current_quantity, payload.delta)
        item = await repo.get_item(item_id)
    except InventoryError as e:
        logger.warning("Adjusting item %s by %+d failed: %s", item_id, payload.delta, e)
        raise http_error(e)
    return QuantityAdjustResult(id=item.id, quantity=item.quantity, status=classify(item))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: UUID, repo: InventoryRepository = Depends(get_repository)):
    try:
        await repo.delete_item(item_id)
    except InventoryError as e:
        logger.warning("Deleting item %s failed: %s", item_id, e)
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
