import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .category import _utcnow

# quantity and min_stock are 32-bit on Postgres
MAX_COUNT = 2**31 - 1


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_items_min_stock_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(
        Uuid,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    # Kept for the table shape; this shop does not price parts
    price = Column(Numeric, nullable=False, default=0)
    image_url = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), index=True
    )

    category = relationship("Category", back_populates="items")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "quantity": self.quantity,
            "min_stock": self.min_stock,
            "price": float(self.price or 0),
            "image_url": self.image_url,
            "created_at": self.created_at,
        }
