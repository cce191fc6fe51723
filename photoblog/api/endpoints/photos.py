"""Photo gallery endpoints.

Visitors page through the gallery and open single photos (behind the site
password when one is set); the admin uploads, edits and deletes photos.
Every path that writes photo metadata passes it through the coordinate
correction first, and every path that reads it rebuilds the
``coordinates`` string from the corrected latitude and longitude.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, File, Form, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photoblog.api.deps import AdminClaims, DBSession, Pagination, SiteAccess, Storage
from photoblog.core.config import settings
from photoblog.core.coordinates import (
    correct_metadata,
    format_coordinates,
    is_number,
    map_coordinates,
)
from photoblog.core.exceptions import NotFoundException, StorageException, ValidationException
from photoblog.models import Photo
from photoblog.schemas import CommentRead, Page, PhotoRead, PhotoUpdate
from photoblog.services.exif import build_photo_metadata, read_image_details
from photoblog.services.storage import validate_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/photos", tags=["Photos"])


def display_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Corrected metadata with ``coordinates`` rebuilt from the numbers."""
    if not metadata:
        return None
    corrected = dict(correct_metadata(metadata))
    latitude = corrected.get("latitude")
    longitude = corrected.get("longitude")
    if is_number(latitude) and is_number(longitude):
        corrected["coordinates"] = format_coordinates(latitude, longitude)
    return corrected


def serialize_photo(photo: Photo) -> PhotoRead:
    metadata = display_metadata(photo.meta)
    return PhotoRead(
        id=photo.id,
        image_url=photo.image_url,
        description=photo.description,
        location=photo.location,
        captured_at=photo.captured_at,
        created_at=photo.created_at,
        metadata=metadata,
        map_coordinates=map_coordinates(metadata),
        comments=[CommentRead.model_validate(comment) for comment in photo.comments],
    )


async def get_photo_or_404(db: AsyncSession, photo_id: int) -> Photo:
    """Load a photo with its comments, refreshing any stale identity."""
    result = await db.execute(
        select(Photo)
        .options(selectinload(Photo.comments))
        .where(Photo.id == photo_id)
        .execution_options(populate_existing=True)
    )
    photo = result.scalar_one_or_none()
    if photo is None:
        raise NotFoundException(f"Photo {photo_id} not found")
    return photo


@router.get(
    "",
    response_model=Page[PhotoRead],
    dependencies=[SiteAccess],
    summary="List photos",
)
async def list_photos(db: DBSession, pagination: Pagination) -> Page[PhotoRead]:
    """Gallery page, newest capture date first."""
    total = await db.scalar(select(func.count()).select_from(Photo)) or 0
    result = await db.execute(
        select(Photo)
        .options(selectinload(Photo.comments))
        .order_by(Photo.captured_at.desc(), Photo.id.desc())
        .offset(pagination.offset)
        .limit(pagination.per_page)
    )
    return Page[PhotoRead](
        items=[serialize_photo(photo) for photo in result.scalars().all()],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.page_count(total),
    )


@router.get(
    "/{photo_id}",
    response_model=PhotoRead,
    dependencies=[SiteAccess],
    summary="Get a photo",
)
async def get_photo(photo_id: int, db: DBSession) -> PhotoRead:
    return serialize_photo(await get_photo_or_404(db, photo_id))


@router.post(
    "",
    response_model=PhotoRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a photo",
)
async def create_photo(
    db: DBSession,
    storage: Storage,
    _: AdminClaims,
    image: UploadFile = File(..., description="JPEG, PNG, GIF or WebP image"),
    description: str = Form(..., min_length=1),
    location: str = Form(..., min_length=1, max_length=255),
    captured_at: Optional[datetime] = Form(None),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
) -> PhotoRead:
    """Upload a photo with its caption and place name.

    The GPS position and capture date are read from the image EXIF data.
    Latitude, longitude and capture date sent with the form take precedence.
    The metadata is corrected before it is stored.

    Raises:
        ValidationException: Blank caption or place, or not a usable image.
        PayloadTooLargeException: Image larger than ``MAX_UPLOAD_BYTES``.
    """
    description = description.strip()
    location = location.strip()
    if not description or not location:
        raise ValidationException("Description and location are required")

    content = await image.read()
    extension = validate_image(content, image.filename, image.content_type, settings.MAX_UPLOAD_BYTES)

    gps, exif_captured_at = read_image_details(content)
    if latitude is None or longitude is None:
        latitude, longitude = gps if gps else (None, None)
    metadata = build_photo_metadata(latitude, longitude, location)

    storage_key, image_url = storage.save(content, extension)
    photo = Photo(
        image_url=image_url,
        storage_key=storage_key,
        description=description,
        location=location,
        captured_at=captured_at or exif_captured_at or datetime.now(timezone.utc),
        meta=metadata,
    )
    db.add(photo)
    try:
        await db.commit()
    except Exception:
        storage.delete(storage_key)
        raise

    logger.info(
        f"Photo {photo.id} uploaded: {image.filename} at {location!r} "
        f"(coordinates={metadata['coordinates']})"
    )
    return serialize_photo(await get_photo_or_404(db, photo.id))


@router.patch("/{photo_id}", response_model=PhotoRead, summary="Edit a photo")
async def update_photo(
    photo_id: int,
    update: PhotoUpdate,
    db: DBSession,
    _: AdminClaims,
) -> PhotoRead:
    """Edit caption, place name or metadata. Metadata is corrected first."""
    photo = await get_photo_or_404(db, photo_id)

    if update.description is not None:
        photo.description = update.description
    if update.location is not None:
        photo.location = update.location
    if update.metadata is not None:
        metadata = update.metadata.model_dump(by_alias=True, exclude_none=True)
        photo.meta = dict(correct_metadata(metadata))

    await db.commit()
    logger.info(f"Photo {photo_id} updated: {sorted(update.model_fields_set)}")
    return serialize_photo(await get_photo_or_404(db, photo_id))


@router.delete("/{photo_id}", summary="Delete a photo")
async def delete_photo(photo_id: int, db: DBSession, storage: Storage, _: AdminClaims) -> Dict[str, Any]:
    """Delete a photo, its comments and its stored image.

    The row is deleted first; a failure to remove the image file is logged
    and does not fail the request.
    """
    photo = await get_photo_or_404(db, photo_id)
    storage_key = photo.storage_key

    await db.delete(photo)
    await db.commit()

    try:
        storage.delete(storage_key)
    except StorageException as e:
        logger.warning(f"Failed to delete image for photo {photo_id}: {e.message}")

    return {"message": "Photo deleted successfully", "id": photo_id}
