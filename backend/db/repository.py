"""
Inventory repository: every read and write of categories and items goes through here.

One repository wraps one AsyncSession (one request). Each call is its own
commit; nothing spans two calls. Database failures surface as GatewayError,
missing rows as NotFound. Input is expected to be validated by the caller
(see schemas.inventory.parse_item_form).
"""

from contextlib import asynccontextmanager
from typing import List, Mapping, Optional, Union
from uuid import UUID

from fastapi import Depends
from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import GatewayError, NotFound
from core.stock import StockLevel
from core.storage import ImageStore, build_image_store, upload_image
from db.category import Category, DEFAULT_ICON
from db.database import get_async_session
from db.item import MAX_COUNT, Item
from schemas.inventory import CategoryUpdate, ItemUpdate, ItemWithCategory

ITEM_FIELDS = {"name", "quantity", "min_stock", "image_url"}
CATEGORY_FIELDS = {"name", "icon", "image_url"}


def _changes(fields: Union[Mapping, ItemUpdate, CategoryUpdate, None], allowed: set) -> dict:
    if fields is None:
        return {}
    if hasattr(fields, "model_dump"):
        fields = fields.model_dump(exclude_unset=True)
    return {k: v for k, v in fields.items() if k in allowed}


class InventoryRepository:
    def __init__(self, db: AsyncSession, images: Optional[ImageStore] = None):
        self.db = db
        self._images = images

    @property
    def images(self) -> ImageStore:
        if self._images is None:
            self._images = build_image_store(self.db)
        return self._images

    @asynccontextmanager
    async def _gateway(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise GatewayError(action, e) from e

    # --- categories -------------------------------------------------------

    async def list_categories(self) -> List[Category]:
        async with self._gateway("list categories"):
            res = await self.db.execute(
                select(Category)
                .order_by(Category.created_at.asc(), Category.id.asc())
                .execution_options(populate_existing=True)
            )
            return list(res.scalars().all())

    async def get_category(self, category_id: UUID) -> Category:
        async with self._gateway("get category"):
            res = await self.db.execute(
                select(Category)
                .where(Category.id == category_id)
                .execution_options(populate_existing=True)
            )
            category = res.scalar_one_or_none()
        if not category:
            raise NotFound("Category", category_id)
        return category

    async def create_category(self, name: str, icon: Optional[str] = DEFAULT_ICON, image_url: Optional[str] = None) -> Category:
        category = Category(name=name, icon=icon, image_url=image_url)
        async with self._gateway("create category"):
            self.db.add(category)
            await self.db.commit()
            await self.db.refresh(category)
        return category

    async def update_category(self, category_id: UUID, fields) -> None:
        data = _changes(fields, CATEGORY_FIELDS)
        if not data:
            await self.get_category(category_id)
            return
        async with self._gateway("update category"):
            res = await self.db.execute(
                update(Category)
                .where(Category.id == category_id)
                .values(**data)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        if res.rowcount == 0:
            raise NotFound("Category", category_id)

    async def delete_category(self, category_id: UUID) -> None:
        # items go with it through ON DELETE CASCADE
        async with self._gateway("delete category"):
            res = await self.db.execute(
                delete(Category).where(Category.id == category_id).execution_options(synchronize_session=False)
            )
            await self.db.commit()
        if res.rowcount == 0:
            raise NotFound("Category", category_id)

    # --- items ------------------------------------------------------------

    async def list_items_by_category(self, category_id: UUID) -> List[Item]:
        async with self._gateway("list items"):
            res = await self.db.execute(
                select(Item)
                .where(Item.category_id == category_id)
                .order_by(Item.created_at.asc(), Item.id.asc())
                .execution_options(populate_existing=True)
            )
            return list(res.scalars().all())

    def _with_category(self):
        return (
            select(Item, Category.name, Category.icon)
            .outerjoin(Category, Category.id == Item.category_id)
            # rows may already sit in the identity map from an earlier call
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _to_read_model(row) -> ItemWithCategory:
        item, category_name, category_icon = row
        return ItemWithCategory(**item.to_schema, category_name=category_name, category_icon=category_icon)

    async def list_items(self) -> List[ItemWithCategory]:
        async with self._gateway("list items"):
            res = await self.db.execute(self._with_category().order_by(Item.created_at.asc(), Item.id.asc()))
            rows = res.all()
        return [self._to_read_model(r) for r in rows]

    async def list_stock_levels(self) -> List[StockLevel]:
        async with self._gateway("list stock levels"):
            res = await self.db.execute(select(Item.category_id, Item.quantity, Item.min_stock))
            rows = res.all()
        return [StockLevel(category_id=r.category_id, quantity=r.quantity, min_stock=r.min_stock) for r in rows]

    async def get_item(self, item_id: UUID) -> ItemWithCategory:
        async with self._gateway("get item"):
            res = await self.db.execute(self._with_category().where(Item.id == item_id))
            row = res.first()
        if not row:
            raise NotFound("Item", item_id)
        return self._to_read_model(row)

    async def create_item(
        self,
        category_id: UUID,
        name: str,
        quantity: int,
        min_stock: int,
        image_url: Optional[str] = None,
    ) -> Item:
        await self.get_category(category_id)
        item = Item(
            category_id=category_id,
            name=name,
            quantity=quantity,
            min_stock=min_stock,
            price=0,
            image_url=image_url,
        )
        async with self._gateway("create item"):
            self.db.add(item)
            await self.db.commit()
            await self.db.refresh(item)
        return item

    async def update_item(self, item_id: UUID, fields) -> None:
        """Partial update; last write wins."""
        data = _changes(fields, ITEM_FIELDS)
        if not data:
            await self.get_item(item_id)
            return
        async with self._gateway("update item"):
            res = await self.db.execute(
                update(Item)
                .where(Item.id == item_id)
                .values(**data)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        if res.rowcount == 0:
            raise NotFound("Item", item_id)

    async def increment_quantity(self, item_id: UUID, delta: int) -> int:
        """Atomically add ``delta`` to the stored quantity, flooring at 0."""
        # anything past -MAX_COUNT already floors every stored quantity to 0
        delta = max(-MAX_COUNT, min(MAX_COUNT, int(delta)))
        raised = Item.quantity + delta
        async with self._gateway("adjust quantity"):
            res = await self.db.execute(
                update(Item)
                .where(Item.id == item_id)
                .values(quantity=case((raised < 0, 0), else_=raised))
                .returning(Item.quantity)
                .execution_options(synchronize_session=False)
            )
            row = res.first()
            await self.db.commit()
        if row is None:
            raise NotFound("Item", item_id)
        return int(row[0])

    async def delete_item(self, item_id: UUID) -> None:
        async with self._gateway("delete item"):
            res = await self.db.execute(
                delete(Item).where(Item.id == item_id).execution_options(synchronize_session=False)
            )
            await self.db.commit()
        if res.rowcount == 0:
            raise NotFound("Item", item_id)

    # --- images -----------------------------------------------------------

    async def upload_image(
        self,
        file_data: bytes,
        suggested_name: Optional[str],
        content_type: Optional[str] = None,
        prefix: str = "",
    ) -> str:
        return await upload_image(self.images, file_data, suggested_name, content_type=content_type, prefix=prefix)


async def get_repository(db: AsyncSession = Depends(get_async_session)) -> InventoryRepository:
    return InventoryRepository(db)
