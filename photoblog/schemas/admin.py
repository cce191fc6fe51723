"""Request and response models for admin tools."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class TransformResult(BaseModel):
    total: int
    transformed: int
    dry_run: bool
    photo_ids: List[int]
    message: str


class LocationUpdate(BaseModel):
    id: int
    metadata: Dict[str, Any]


class UpdateLocationsRequest(BaseModel):
    photos: List[LocationUpdate] = Field(..., max_length=1000)


class UpdateLocationsResult(BaseModel):
    updated: List[int]
    missing: List[int]


class Stats(BaseModel):
    photos: int
    comments: int
    photos_with_coordinates: int
    photos_needing_correction: int
    timestamp: datetime
