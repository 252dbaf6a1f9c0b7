import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InventoryError, http_error
from db.database import get_async_session
from db.image import StoredImage
from db.repository import InventoryRepository, get_repository
from schemas.inventory import ImageUploadOut

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_upload(upload: Optional[UploadFile]) -> Optional[Tuple[bytes, str, Optional[str]]]:
    """(bytes, filename, content type) for a submitted file, or None when the field was left empty."""
    if upload is None or not upload.filename:
        return None
    file_data = await upload.read()
    if not file_data:
        return None
    return file_data, upload.filename, upload.content_type


@router.post("/upload", response_model=ImageUploadOut, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    repo: InventoryRepository = Depends(get_repository),
):
    """
    Store an image in the configured bucket and return its public URL.
    """
    submitted = await read_upload(file)
    if submitted is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'file' must be provided")
    file_data, filename, content_type = submitted
    try:
        url = await repo.upload_image(file_data, filename, content_type=content_type)
    except InventoryError as e:
        logger.warning("Image upload failed: %s", e)
        raise http_error(e)
    return ImageUploadOut(url=url, name=url.rsplit("/", 1)[-1])


@router.get("/serve/{bucket}/{name}", response_class=Response)
async def serve_image(
    bucket: str,
    name: str,
    db: AsyncSession = Depends(get_async_session),
):
    """Serve an image blob. No auth so img src works."""
    result = await db.execute(
        select(StoredImage).where(StoredImage.bucket == bucket, StoredImage.name == name)
    )
    row = result.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return Response(content=bytes(row.data), media_type=row.content_type)
