"""
Quantity adjustment.

Direct delta (list views): ``adjust_quantity`` writes immediately through the
repository's atomic increment and returns the stored value.

Staged batch (item edit view): ``StagedQuantity`` keeps the persisted value,
a local working copy and the pending amount typed by the user. Add/Remove only
touch the working copy. ``ItemEditSession.commit`` is the single path that
writes it back; dropping the session discards everything staged.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from uuid import UUID

from schemas.inventory import ItemWithCategory, parse_item_form

logger = logging.getLogger(__name__)


def apply_delta(current_quantity: int, delta: int) -> int:
    return max(0, int(current_quantity) + int(delta))


async def adjust_quantity(repository, item_id: UUID, current_quantity: int, delta: int) -> int:
    """Apply ``delta`` to an item's stock and return the persisted quantity.

    ``current_quantity`` is the caller's view. The write itself is an atomic
    increment at the database, so a stale view cannot lose a concurrent update;
    the returned value is what was stored and may differ from
    ``apply_delta(current_quantity, delta)``.
    """
    expected = apply_delta(current_quantity, delta)
    persisted = await repository.increment_quantity(item_id, delta)
    if persisted != expected:
        logger.debug(
            "Item %s changed underneath the caller: expected %d after %+d, stored %d",
            item_id, expected, delta, persisted,
        )
    return persisted


def _parse_amount(text) -> int:
    if text is None:
        return 0
    try:
        return int(str(text).strip())
    except ValueError:
        return 0


@dataclass
class StagedQuantity:
    persisted: int
    working: Optional[int] = None
    pending: str = ""

    def __post_init__(self):
        if self.working is None:
            self.working = self.persisted

    @property
    def dirty(self) -> bool:
        return self.working != self.persisted

    def stage(self, amount) -> None:
        self.pending = "" if amount is None else str(amount)

    def _take(self) -> int:
        amount = _parse_amount(self.pending)
        if amount > 0:
            self.pending = ""
        return amount

    def add(self) -> int:
        amount = self._take()
        if amount > 0:
            self.working += amount
        return self.working

    def remove(self) -> int:
        amount = self._take()
        if amount > 0:
            self.working = max(0, self.working - amount)
        return self.working

    def set(self, quantity: int) -> None:
        self.working = quantity

    def discard(self) -> None:
        self.working = self.persisted
        self.pending = ""


@dataclass
class ItemEditSession:
    item_id: UUID
    category_id: UUID
    name: str
    min_stock: Union[int, str]
    image_url: Optional[str]
    quantity: StagedQuantity

    @classmethod
    def from_item(cls, item: ItemWithCategory) -> "ItemEditSession":
        return cls(
            item_id=item.id,
            category_id=item.category_id,
            name=item.name,
            min_stock=item.min_stock,
            image_url=item.image_url,
            quantity=StagedQuantity(persisted=item.quantity),
        )

    @classmethod
    async def open(cls, repository, item_id: UUID) -> "ItemEditSession":
        return cls.from_item(await repository.get_item(item_id))

    async def commit(self, repository, image: Optional[Tuple[bytes, str]] = None, content_type: Optional[str] = None):
        """Validate and persist the edit form.

        A new image is uploaded first; if that fails the item is not written.
        Raises ValidationError before any gateway call when the form is bad.
        """
        form = parse_item_form(name=self.name, quantity=self.quantity.working, min_stock=self.min_stock)
        image_url = self.image_url
        if image is not None:
            file_data, filename = image
            image_url = await repository.upload_image(file_data, filename, content_type=content_type)
        await repository.update_item(
            self.item_id,
            {
                "name": form.name,
                "quantity": form.quantity,
                "min_stock": form.min_stock,
                "image_url": image_url,
            },
        )
        self.name = form.name
        self.min_stock = form.min_stock
        self.image_url = image_url
        self.quantity = StagedQuantity(persisted=form.quantity)
        return form
