"""Liveness and readiness probes. Neither needs the site password."""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status

from photoblog import __version__
from photoblog.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", summary="Liveness probe")
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.APP_ENV,
        "timestamp": _now(),
    }


async def _check_database(request: Request) -> Dict[str, str]:
    try:
        await request.app.state.database.ping()
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return {"status": "unhealthy", "message": str(e)}
    return {"status": "healthy", "message": "Connected"}


def _check_media(request: Request) -> Dict[str, str]:
    root = request.app.state.storage.photos_path
    if root.is_dir() and os.access(root, os.W_OK):
        return {"status": "healthy", "message": str(root)}
    return {"status": "unhealthy", "message": f"{root} is not a writable directory"}


@router.get("/health/ready", summary="Readiness probe")
async def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    """Report whether the database answers and uploads can be written.

    Answers 503 while any check is unhealthy so a load balancer holds
    traffic back.
    """
    checks = {
        "database": await _check_database(request),
        "media": _check_media(request),
    }
    ready = all(check["status"] == "healthy" for check in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if ready else "not_ready",
        "timestamp": _now(),
        "checks": checks,
    }
