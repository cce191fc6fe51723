"""Request and response models for photos."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from photoblog.schemas.comment import CommentRead


class PhotoMetadata(BaseModel):
    """Location metadata stored with a photo.

    Unknown keys are kept so that metadata written by older clients
    survives a round trip.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    coordinates: Optional[str] = Field(None, description='"lat,lng"')
    original_location: Optional[str] = Field(None, alias="originalLocation")


class PhotoRead(BaseModel):
    id: int
    image_url: str
    description: str
    location: str
    captured_at: datetime
    created_at: datetime
    metadata: Optional[Dict[str, Any]] = None
    map_coordinates: str = Field(
        "",
        description='Corrected "lat,lng" for a map link, empty when unknown',
    )
    comments: List[CommentRead] = []


class PhotoUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    metadata: Optional[PhotoMetadata] = None
