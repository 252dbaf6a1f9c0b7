from datetime import datetime
from typing import List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator

from core.errors import ValidationError
from core.stock import StockStatus
from db.category import DEFAULT_ICON
from db.item import MAX_COUNT

FormT = TypeVar("FormT", bound=BaseModel)


def _required_name(v) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("name is required")
    return v


def _count(v):
    """Form fields arrive as text; accept whole numbers >= 0 only."""
    if isinstance(v, bool):
        raise ValueError("must be a whole number")
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("is required")
    try:
        n = int(v)
    except (TypeError, ValueError, OverflowError):
        raise ValueError("must be a whole number")
    if isinstance(v, float) and v != n:
        raise ValueError("must be a whole number")
    if n < 0:
        raise ValueError("cannot be negative")
    if n > MAX_COUNT:
        raise ValueError("is too large")
    return n


class CategoryCreate(BaseModel):
    name: str
    icon: Optional[str] = DEFAULT_ICON

    @field_validator("name", mode="before")
    @classmethod
    def _strip_required(cls, v) -> str:
        return _required_name(v)

    @field_validator("icon", mode="before")
    @classmethod
    def _icon(cls, v) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or DEFAULT_ICON


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_optional(cls, v) -> Optional[str]:
        if v is None:
            return None
        return _required_name(v)


class ItemCreate(BaseModel):
    name: str
    quantity: int
    min_stock: int

    @field_validator("name", mode="before")
    @classmethod
    def _strip_required(cls, v) -> str:
        return _required_name(v)

    @field_validator("quantity", "min_stock", mode="before")
    @classmethod
    def _non_negative(cls, v) -> int:
        return _count(v)


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    quantity: Optional[int] = None
    min_stock: Optional[int] = None
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_optional(cls, v) -> Optional[str]:
        if v is None:
            return None
        return _required_name(v)

    @field_validator("quantity", "min_stock", mode="before")
    @classmethod
    def _non_negative_optional(cls, v) -> Optional[int]:
        if v is None:
            return None
        return _count(v)


def parse_form(model: Type[FormT], **fields) -> FormT:
    """Validate raw form input, raising the inventory ValidationError on failure."""
    try:
        return model(**fields)
    except PydanticValidationError as e:
        messages = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            msg = err.get("msg", "invalid").removeprefix("Value error, ")
            messages.append(f"{loc} {msg}" if loc else msg)
        raise ValidationError(messages) from e


def parse_item_form(name=None, quantity=None, min_stock=None) -> ItemCreate:
    return parse_form(ItemCreate, name=name, quantity=quantity, min_stock=min_stock)


def parse_category_form(name=None, icon=DEFAULT_ICON) -> CategoryCreate:
    return parse_form(CategoryCreate, name=name, icon=icon)


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    icon: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class CategorySummary(CategoryRead):
    item_count: int = 0
    low_stock_count: int = 0


class StatusCountsOut(BaseModel):
    in_stock: int
    low_stock: int
    out_of_stock: int


class CategoryDetail(CategorySummary):
    status_counts: StatusCountsOut


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category_id: UUID
    name: str
    quantity: int
    min_stock: int
    price: float = 0
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class ItemOut(ItemRead):
    status: StockStatus


class ItemWithCategory(ItemRead):
    """Item joined with its category's display fields."""
    category_name: Optional[str] = None
    category_icon: Optional[str] = None


class ItemWithCategoryOut(ItemWithCategory):
    status: StockStatus


class QuantityAdjustRequest(BaseModel):
    current_quantity: int
    delta: int

    @field_validator("current_quantity", mode="before")
    @classmethod
    def _non_negative(cls, v) -> int:
        return _count(v)

    @field_validator("delta")
    @classmethod
    def _bounded(cls, v: int) -> int:
        if v > MAX_COUNT:
            raise ValueError("is too large")
        return v


class QuantityAdjustResult(BaseModel):
    id: UUID
    quantity: int
    status: StockStatus


class DashboardOut(BaseModel):
    categories: List[CategorySummary]
    category_count: int
    item_count: int
    low_stock_count: int


class ImageUploadOut(BaseModel):
    url: str
    name: Optional[str] = None
