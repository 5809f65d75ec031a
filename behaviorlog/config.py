"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None
    db_pool_size: int = 20
    db_acquire_timeout_s: float = 2.0
    db_pool_recycle_s: int = 1800

    # UI
    ui_origin: str = "http://localhost:5173"

    # Auth
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_private_key_pem: str = ""
    jwt_public_key_pem: str = ""
    jwt_ttl_seconds: int = 7 * 24 * 3600
    auth_cookie_name: str = "token"
    auth_cookie_secure: bool = False

    # Audit query paging
    audit_page_size_default: int = 100
    audit_page_size_max: int = 1000

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
