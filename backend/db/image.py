import uuid
from sqlalchemy import Column, DateTime, LargeBinary, String, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from .database import Base
from .category import _utcnow


class StoredImage(Base):
    """Image blob kept in the database when IMAGE_STORAGE=database."""
    __tablename__ = "images"
    __table_args__ = (UniqueConstraint("bucket", "name", name="ux_images_bucket_name"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bucket = Column(String(63), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    data = Column(LargeBinary, nullable=False)
    content_type = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
