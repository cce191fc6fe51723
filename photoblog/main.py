"""ASGI application for the photo blog.

Run with ``python -m photoblog serve`` or ``uvicorn photoblog.main:app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from photoblog import __version__
from photoblog.api.endpoints import admin, auth, comments, health, photos
from photoblog.core.config import DEFAULT_ADMIN_PASSWORD, Settings, settings
from photoblog.core.logging import setup_logging
from photoblog.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from photoblog.middleware.rate_limit import limiter
from photoblog.services.database import Database
from photoblog.services.storage import ImageStorage

setup_logging()
logger = logging.getLogger(__name__)

API_ROUTERS = (auth.router, photos.router, comments.router, admin.router)


def insecure_settings(config: Settings) -> List[str]:
    """Warnings for settings that leave the blog open or easy to log into."""
    problems = []
    if not config.site_gate_enabled:
        problems.append("SITE_PASSWORD is empty; the gallery is public")
    if not config.ADMIN_PASSWORD_HASH and config.ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
        problems.append("Admin login uses the default password; set ADMIN_PASSWORD_HASH or ADMIN_PASSWORD")
    return problems


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database and media store for the lifetime of the app."""
    logger.info(f"Photo blog {__version__} starting ({settings.APP_ENV}, debug={settings.DEBUG})")

    database = Database(settings.SQLALCHEMY_DATABASE_URI, echo=settings.DEBUG)
    database.connect()
    if settings.AUTO_CREATE_TABLES:
        await database.create_tables()

    app.state.database = database
    app.state.storage = ImageStorage(settings.MEDIA_ROOT, base_url=settings.MEDIA_URL)
    for problem in insecure_settings(settings):
        logger.warning(problem)

    try:
        yield
    finally:
        logger.info("Photo blog shutting down")
        await database.disconnect()


def create_application() -> FastAPI:
    app = FastAPI(
        title="Photo Blog API",
        description=(
            "Password-protected photo gallery with visitor comments and an "
            "admin area that repairs GPS longitudes saved with the wrong sign."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    setup_exception_handlers(app)

    app.include_router(health.router)
    for router in API_ROUTERS:
        app.include_router(router, prefix=settings.API_PREFIX)

    # Uploaded images; the directory is created by ImageStorage at startup
    app.mount(
        settings.MEDIA_URL,
        StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False),
        name="media",
    )
    return app


app = create_application()
