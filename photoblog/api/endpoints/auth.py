"""Admin login and public-site unlock."""

import logging

from fastapi import APIRouter, Request

from photoblog.api.deps import AdminClaims
from photoblog.core.config import settings
from photoblog.core.exceptions import UnauthorizedException
from photoblog.core.security import (
    create_admin_token,
    create_site_token,
    verify_admin_password,
    verify_site_password,
)
from photoblog.middleware.rate_limit import get_ip_address, password_attempt_limit
from photoblog.schemas import LoginRequest, SessionInfo, SiteAccessRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Admin login",
)
@password_attempt_limit
async def login(request: Request, credentials: LoginRequest) -> TokenResponse:
    """Exchange the admin password for a session token.

    Any non-empty email is accepted; the password is what identifies the
    admin. Failed attempts are logged with the client address.

    Raises:
        UnauthorizedException: Wrong password.
    """
    if not verify_admin_password(credentials.password):
        logger.warning(
            f"Failed admin login for {credentials.email!r} from {get_ip_address(request)}"
        )
        raise UnauthorizedException("Invalid credentials")

    logger.info(f"Admin login from {get_ip_address(request)}")
    return TokenResponse(
        access_token=create_admin_token(),
        expires_in=settings.ADMIN_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post(
    "/site",
    response_model=TokenResponse,
    summary="Unlock the public site",
)
@password_attempt_limit
async def unlock_site(request: Request, body: SiteAccessRequest) -> TokenResponse:
    """Exchange the site password for a site token.

    When no site password is configured every request gets a token.
    """
    if not verify_site_password(body.password):
        logger.warning(f"Wrong site password from {get_ip_address(request)}")
        raise UnauthorizedException("Incorrect password")

    return TokenResponse(
        access_token=create_site_token(),
        expires_in=settings.SITE_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/session", response_model=SessionInfo, summary="Current admin session")
async def read_session(claims: AdminClaims) -> SessionInfo:
    return SessionInfo(email=claims["sub"], role=claims.get("role", "admin"))
