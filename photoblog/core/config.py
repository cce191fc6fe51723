"""Runtime settings for the photo blog, read from the environment or ``.env``."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

THIRTY_DAYS_MINUTES = 30 * 24 * 60
DEFAULT_ADMIN_PASSWORD = "admin"


class Settings(BaseSettings):
    """Environment variable names match the field names exactly."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    CORS_ORIGINS: str = Field("http://localhost:3000", description="Comma separated origins")

    # Either a full async URL, or assembled from the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "photoblog"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    AUTO_CREATE_TABLES: bool = True

    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = DEFAULT_ADMIN_PASSWORD
    ADMIN_PASSWORD_HASH: Optional[str] = Field(
        None, description="passlib hash; checked instead of ADMIN_PASSWORD when set"
    )
    SITE_PASSWORD: str = Field("", description="Gallery password; empty leaves the gallery open")

    # A random key is generated per process when unset
    JWT_SECRET_KEY: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    ADMIN_TOKEN_EXPIRE_MINUTES: int = THIRTY_DAYS_MINUTES
    SITE_TOKEN_EXPIRE_MINUTES: int = THIRTY_DAYS_MINUTES

    MEDIA_ROOT: Path = Path("uploads")
    MEDIA_URL: str = "/media"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    GALLERY_PAGE_SIZE: int = 9

    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = Field("5/minute", description="slowapi limit for password endpoints")

    @computed_field  # type: ignore[misc]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def site_gate_enabled(self) -> bool:
        return bool(self.SITE_PASSWORD)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
