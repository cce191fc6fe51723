"""Admin credentials, site password and session tokens.

The admin is a single account whose password lives in configuration.
Both the admin session and the public-site unlock are represented by
signed JWTs carrying a ``scope`` claim (``admin`` or ``site``).
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from photoblog.core.config import settings
from photoblog.core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

ADMIN_SCOPE = "admin"
SITE_SCOPE = "site"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

JWT_SECRET_KEY = settings.JWT_SECRET_KEY
if not JWT_SECRET_KEY:
    JWT_SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning("JWT_SECRET_KEY not set! Generated a temporary key; sessions end on restart.")


def hash_password(password: str) -> str:
    """Hash a password for ``ADMIN_PASSWORD_HASH``."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a passlib hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a recognised hash")
        return False


def verify_admin_password(password: str) -> bool:
    """Check a candidate admin password against configuration.

    ``ADMIN_PASSWORD_HASH`` wins when set; otherwise the plain
    ``ADMIN_PASSWORD`` is compared in constant time.
    """
    if settings.ADMIN_PASSWORD_HASH:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return secrets.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())


def verify_site_password(password: str) -> bool:
    """Check the public-site password. Always true when the gate is off."""
    if not settings.site_gate_enabled:
        return True
    return secrets.compare_digest(password.encode(), settings.SITE_PASSWORD.encode())


def create_access_token(
    subject: str,
    scope: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Create a signed token.

    Args:
        subject: Value of the ``sub`` claim.
        scope: ``admin`` or ``site``.
        expires_delta: Token lifetime; defaults to the configured lifetime
            for the scope.
        extra_claims: Additional claims merged into the payload.

    Returns:
        Encoded JWT.
    """
    if expires_delta is None:
        minutes = (
            settings.ADMIN_TOKEN_EXPIRE_MINUTES
            if scope == ADMIN_SCOPE
            else settings.SITE_TOKEN_EXPIRE_MINUTES
        )
        expires_delta = timedelta(minutes=minutes)

    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = dict(extra_claims or {})
    payload.update(
        {
            "sub": subject,
            "scope": scope,
            "iat": now,
            "exp": now + expires_delta,
        }
    )
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a token.

    Raises:
        UnauthorizedException: If the signature or expiry check fails.
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise UnauthorizedException("Invalid or expired token")


def create_admin_token() -> str:
    """Issue the admin session token."""
    return create_access_token(
        settings.ADMIN_EMAIL,
        ADMIN_SCOPE,
        extra_claims={"role": "admin"},
    )


def create_site_token() -> str:
    """Issue a public-site access token."""
    return create_access_token("visitor", SITE_SCOPE)
