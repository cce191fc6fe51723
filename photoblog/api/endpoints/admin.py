"""Admin dashboard statistics and bulk location tools."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Query
from sqlalchemy import func, select

from photoblog.api.deps import AdminClaims, DBSession
from photoblog.models import Comment, Photo
from photoblog.schemas import Stats, TransformResult, UpdateLocationsRequest, UpdateLocationsResult
from photoblog.services.location_fixer import location_stats, transform_locations, update_locations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=Stats, summary="Dashboard statistics")
async def get_stats(db: DBSession, _: AdminClaims) -> Stats:
    """Counts for the admin dashboard.

    ``photos_needing_correction`` is the number of photos the bulk location
    fix would change right now.
    """
    total_photos = await db.scalar(select(func.count()).select_from(Photo)) or 0
    total_comments = await db.scalar(select(func.count()).select_from(Comment)) or 0
    locations = await location_stats(db)

    return Stats(
        photos=total_photos,
        comments=total_comments,
        photos_with_coordinates=locations.with_coordinates,
        photos_needing_correction=locations.needing_correction,
        timestamp=datetime.now(timezone.utc),
    )


@router.post(
    "/photos/transform-locations",
    response_model=TransformResult,
    summary="Correct stored longitudes",
)
async def run_transform_locations(
    db: DBSession,
    claims: AdminClaims,
    dry_run: bool = Query(False, description="Report changes without saving them"),
) -> TransformResult:
    """Run every stored photo through the longitude correction.

    Safe to repeat: corrected photos are not changed again.
    """
    logger.info(f"Location transform requested by {claims['sub']} (dry_run={dry_run})")
    summary = await transform_locations(db, dry_run=dry_run)
    return TransformResult(
        total=summary.total,
        transformed=summary.transformed,
        dry_run=summary.dry_run,
        photo_ids=summary.photo_ids,
        message=summary.message,
    )


@router.post(
    "/photos/update-locations",
    response_model=UpdateLocationsResult,
    summary="Save metadata for several photos",
)
async def run_update_locations(
    body: UpdateLocationsRequest,
    db: DBSession,
    _: AdminClaims,
) -> UpdateLocationsResult:
    """Store client-supplied metadata, corrected, for each listed photo."""
    updated, missing = await update_locations(
        db, [(item.id, item.metadata) for item in body.photos]
    )
    return UpdateLocationsResult(updated=updated, missing=missing)
