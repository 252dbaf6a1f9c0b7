import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

DEFAULT_ICON = "📦"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    icon = Column(String(16), nullable=True, default=DEFAULT_ICON)
    image_url = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), index=True
    )

    # Items are removed by the FK cascade, not by the ORM
    items = relationship("Item", back_populates="category", passive_deletes=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "image_url": self.image_url,
            "created_at": self.created_at,
        }
