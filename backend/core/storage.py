"""
Image storage for item and category pictures.

Two backends share one small interface (``put`` returning a public URL):

- DatabaseImageStore keeps blobs in the ``images`` table; the app serves them
  from ``/images/serve/{bucket}/{name}``.
- ImageKitImageStore pushes blobs to the ImageKit CDN.

Object names come from ``make_object_name`` so two uploads of the same file
never overwrite each other.
"""

import asyncio
import logging
import os
import secrets
import tempfile
import time
from typing import Optional, Protocol

from imagekitio import ImageKit
from imagekitio.models.UploadFileRequestOptions import UploadFileRequestOptions
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import UploadError, ValidationError
from db.image import StoredImage

logger = logging.getLogger(__name__)

EXT_TO_CONTENT_TYPE = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
}
MIN_IMAGE_BYTES = 100


def make_object_name(suggested_name: Optional[str], prefix: str = "", now: Optional[float] = None) -> str:
    """``{prefix}{epoch millis}-{6 random hex chars}.{original extension}``"""
    ext = os.path.splitext(suggested_name or "")[1].lower().lstrip(".") or "jpg"
    millis = int((time.time() if now is None else now) * 1000)
    return f"{prefix}{millis}-{secrets.token_hex(3)}.{ext}"


def resolve_content_type(suggested_name: Optional[str], content_type: Optional[str] = None) -> str:
    content_type = (content_type or "").strip().lower()
    ext = os.path.splitext(suggested_name or "")[1].lower().lstrip(".")
    if content_type and content_type != "application/octet-stream":
        if not content_type.startswith("image/"):
            raise ValidationError(["File must be an image"])
        return content_type
    if ext and ext not in EXT_TO_CONTENT_TYPE:
        raise ValidationError(["File must be an image"])
    return EXT_TO_CONTENT_TYPE.get(ext, "image/jpeg")


def check_image_size(file_data: bytes) -> None:
    if len(file_data) < MIN_IMAGE_BYTES:
        raise ValidationError(["Image file appears to be corrupted or too small"])
    if len(file_data) > settings.max_image_bytes:
        raise ValidationError([f"Image size must be less than {settings.max_image_bytes // (1024 * 1024)}MB"])


class ImageStore(Protocol):
    bucket: str

    async def put(self, name: str, file_data: bytes, content_type: str) -> str:
        ...


class DatabaseImageStore:
    def __init__(self, db: AsyncSession, bucket: str = None, base_url: str = None):
        self.db = db
        self.bucket = bucket or settings.image_bucket
        self.base_url = settings.public_base_url if base_url is None else base_url.rstrip("/")

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/images/serve/{self.bucket}/{name}"

    async def put(self, name: str, file_data: bytes, content_type: str) -> str:
        try:
            self.db.add(StoredImage(bucket=self.bucket, name=name, data=file_data, content_type=content_type))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise UploadError(f"Failed to store image {name}: {e}", cause=e) from e
        return self.public_url(name)


class ImageKitImageStore:
    def __init__(self, bucket: str = None, client=None):
        self.bucket = bucket or settings.image_bucket
        self.client = client or ImageKit(
            public_key=settings.imagekit_public_key,
            private_key=settings.imagekit_private_key,
            url_endpoint=settings.imagekit_url_endpoint,
        )

    def _upload(self, name: str, file_data: bytes):
        # The SDK wants a file object opened in binary mode
        ext = os.path.splitext(name)[1] or ".jpg"
        with tempfile.NamedTemporaryFile(suffix=ext) as tmp:
            tmp.write(file_data)
            tmp.flush()
            tmp.seek(0)
            return self.client.upload_file(
                file=tmp,
                file_name=name,
                options=UploadFileRequestOptions(
                    folder=self.bucket,
                    use_unique_file_name=False,
                    is_private_file=False,
                ),
            )

    async def put(self, name: str, file_data: bytes, content_type: str) -> str:
        try:
            upload = await asyncio.to_thread(self._upload, name, file_data)
        except Exception as e:
            raise UploadError(f"Failed to upload image to ImageKit: {e}", cause=e) from e
        url = getattr(upload, "url", None)
        if not url:
            raise UploadError("Failed to upload image to ImageKit: upload returned no URL")
        return url


_imagekit_store: Optional[ImageKitImageStore] = None


def build_image_store(db: AsyncSession) -> ImageStore:
    """Pick the backend named by IMAGE_STORAGE."""
    global _imagekit_store
    if settings.image_storage == "imagekit":
        if _imagekit_store is None:
            _imagekit_store = ImageKitImageStore()
        return _imagekit_store
    return DatabaseImageStore(db)


async def upload_image(
    store: ImageStore,
    file_data: bytes,
    suggested_name: Optional[str],
    content_type: Optional[str] = None,
    prefix: str = "",
) -> str:
    """Validate, name and store an image; returns its public URL."""
    resolved_type = resolve_content_type(suggested_name, content_type)
    check_image_size(file_data)
    name = make_object_name(suggested_name, prefix=prefix)
    url = await store.put(name, file_data, resolved_type)
    logger.info("Stored image %s in %s (%d bytes)", name, store.bucket, len(file_data))
    return url
