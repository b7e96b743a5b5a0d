from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Solar Supplier Marketplace"
    ENVIRONMENT: str = "local"
    CORS_ORIGINS: str = "*"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./marketplace.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_EXPIRATION_MINUTES: int = 60 * 12

    # ==============================
    # Marketplace
    # ==============================
    MARKETPLACE_DEFAULT_PAGE_SIZE: int = 12
    MARKETPLACE_MAX_PAGE_SIZE: int = 100

    # ==============================
    # Uploads
    # ==============================
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    UPLOAD_PUBLIC_BASE_URL: Optional[str] = None
    UPLOAD_MAX_PDF_BYTES: int = 5 * 1024 * 1024
    UPLOAD_MAX_FILE_BYTES: int = 20 * 1024 * 1024

    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
