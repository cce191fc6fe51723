from photoblog.schemas.admin import (
    LocationUpdate,
    Stats,
    TransformResult,
    UpdateLocationsRequest,
    UpdateLocationsResult,
)
from photoblog.schemas.auth import LoginRequest, SessionInfo, SiteAccessRequest, TokenResponse
from photoblog.schemas.comment import (
    CommentCreate,
    CommentRead,
    CommentUpdate,
    CommentWithPhoto,
    PhotoSummary,
)
from photoblog.schemas.common import Page
from photoblog.schemas.photo import PhotoMetadata, PhotoRead, PhotoUpdate

__all__ = [
    "CommentCreate",
    "CommentRead",
    "CommentUpdate",
    "CommentWithPhoto",
    "LocationUpdate",
    "LoginRequest",
    "Page",
    "PhotoMetadata",
    "PhotoRead",
    "PhotoSummary",
    "PhotoUpdate",
    "SessionInfo",
    "SiteAccessRequest",
    "Stats",
    "TokenResponse",
    "TransformResult",
    "UpdateLocationsRequest",
    "UpdateLocationsResult",
]
