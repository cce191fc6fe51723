"""Bulk repair of stored photo coordinates.

Older uploads were saved before ingestion corrected longitudes, so some
rows still hold a positive longitude for places in the USA. The functions
here run every stored photo through the collection corrector and write
back the ones that changed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photoblog.core.coordinates import (
    changed_indexes,
    correct_collection,
    correct_metadata,
    is_number,
    needs_correction,
)
from photoblog.models import Photo

logger = logging.getLogger(__name__)


@dataclass
class TransformSummary:
    """Outcome of a bulk coordinate fix."""

    total: int
    transformed: int
    dry_run: bool
    photo_ids: List[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.dry_run:
            return f"{self.transformed} of {self.total} photos would be corrected"
        return f"Corrected {self.transformed} of {self.total} photos"


@dataclass
class LocationStats:
    """Coordinate health of the stored photos."""

    with_coordinates: int
    needing_correction: int


async def _load_photo_records(db: AsyncSession) -> Tuple[List[Photo], List[Dict[str, Any]]]:
    result = await db.execute(select(Photo).order_by(Photo.id))
    photos = list(result.scalars().all())
    records = [{"id": photo.id, "metadata": photo.meta} for photo in photos]
    return photos, records


async def transform_locations(db: AsyncSession, dry_run: bool = False) -> TransformSummary:
    """Correct the metadata of every stored photo.

    Args:
        db: Async database session.
        dry_run: Report what would change without writing.

    Returns:
        Counts and the ids of the photos that were (or would be) corrected.
    """
    photos, records = await _load_photo_records(db)
    corrected = correct_collection(records)
    indexes = changed_indexes(records, corrected)

    if not dry_run:
        for index in indexes:
            # Assign a new dict so the JSON column is flagged dirty
            photos[index].meta = dict(corrected[index]["metadata"])
        if indexes:
            await db.commit()

    summary = TransformSummary(
        total=len(photos),
        transformed=len(indexes),
        dry_run=dry_run,
        photo_ids=[photos[index].id for index in indexes],
    )
    logger.info(
        f"Location transform: {summary.transformed}/{summary.total} photos "
        f"{'would change' if dry_run else 'updated'} (ids={summary.photo_ids})"
    )
    return summary


async def update_locations(
    db: AsyncSession,
    updates: Iterable[Tuple[int, Mapping[str, Any]]],
) -> Tuple[List[int], List[int]]:
    """Save client-supplied metadata for several photos.

    Every metadata mapping goes through the coordinate correction before it
    is stored. Unknown ids are collected rather than treated as errors.

    Returns:
        ``(updated_ids, missing_ids)``.
    """
    updated: List[int] = []
    missing: List[int] = []

    for photo_id, metadata in updates:
        photo = await db.get(Photo, photo_id)
        if photo is None:
            missing.append(photo_id)
            continue
        photo.meta = dict(correct_metadata(metadata))
        updated.append(photo_id)

    if updated:
        await db.commit()

    if missing:
        logger.warning(f"Location update skipped unknown photos: {missing}")
    logger.info(f"Location update saved {len(updated)} photos")
    return updated, missing


async def location_stats(db: AsyncSession) -> LocationStats:
    """Count photos with coordinates and those still needing a fix."""
    _, records = await _load_photo_records(db)

    with_coordinates = 0
    needing_correction = 0
    for record in records:
        metadata = record["metadata"] or {}
        latitude = metadata.get("latitude")
        longitude = metadata.get("longitude")
        if not (is_number(latitude) and is_number(longitude)):
            continue
        with_coordinates += 1
        if needs_correction(latitude, longitude):
            needing_correction += 1

    return LocationStats(
        with_coordinates=with_coordinates,
        needing_correction=needing_correction,
    )
