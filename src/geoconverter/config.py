"""Settings loaded from environment variables (prefix ``GEOCONVERTER_``)."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="GEOCONVERTER_", env_file=".env", extra="ignore")

    # Scratch store
    scratch_root: str = "/vsimem/geoconverter"

    # Conversion defaults
    default_precision: int = 7

    # HTTP server
    max_upload_bytes: int = 200 * 1024 * 1024
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
