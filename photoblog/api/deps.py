"""Dependency injection utilities for API endpoints.

This module provides common dependencies used across API routes,
such as database sessions, pagination parameters and access checks.
"""

import math
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Query, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from photoblog.core.config import settings
from photoblog.core.exceptions import ForbiddenException, UnauthorizedException
from photoblog.core.security import ADMIN_SCOPE, SITE_SCOPE, decode_access_token
from photoblog.services.database import get_db
from photoblog.services.storage import ImageStorage

SITE_TOKEN_HEADER = "X-Site-Token"

bearer_scheme = HTTPBearer(auto_error=False)
site_token_scheme = APIKeyHeader(name=SITE_TOKEN_HEADER, auto_error=False)

# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


class PaginationParams:
    """Common pagination parameters for list endpoints.

    Attributes:
        page: 1-based page number.
        per_page: Records per page.
    """

    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number")] = 1,
        per_page: Annotated[
            Optional[int], Query(ge=1, le=100, description="Records per page")
        ] = None,
    ) -> None:
        self.page = page
        self.per_page = per_page or settings.GALLERY_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def page_count(self, total: int) -> int:
        return math.ceil(total / self.per_page) if total else 0


# Type alias for pagination dependency
Pagination = Annotated[PaginationParams, Depends()]


async def get_current_admin(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Dict[str, Any]:
    """Require an admin session token.

    Raises:
        UnauthorizedException: No token, or the token is invalid or expired.
        ForbiddenException: The token is valid but not an admin token.

    Returns:
        The decoded token claims.
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload.get("scope") != ADMIN_SCOPE:
        raise ForbiddenException("Admin access required")
    return payload


AdminClaims = Annotated[Dict[str, Any], Depends(get_current_admin)]


async def require_site_access(
    site_token: Annotated[Optional[str], Depends(site_token_scheme)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> None:
    """Require the site password unless the gate is disabled.

    A site token in ``X-Site-Token`` or an admin bearer token both unlock
    the public pages.
    """
    if not settings.site_gate_enabled:
        return

    candidates = [
        (site_token, (SITE_SCOPE, ADMIN_SCOPE)),
        (credentials.credentials if credentials else None, (ADMIN_SCOPE,)),
    ]
    for token, scopes in candidates:
        if not token:
            continue
        try:
            payload = decode_access_token(token)
        except UnauthorizedException:
            continue
        if payload.get("scope") in scopes:
            return

    raise UnauthorizedException("Site password required")


SiteAccess = Depends(require_site_access)


def get_storage(request: Request) -> ImageStorage:
    return request.app.state.storage


Storage = Annotated[ImageStorage, Depends(get_storage)]
