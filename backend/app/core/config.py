"""
Application configuration using pydantic-settings.
All config is loaded from environment variables. The MongoDB URI has no
default: running without it is a configuration error, never a silent fallback.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Event Catalog API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGODB_URI: Optional[str] = None
    MONGODB_DATABASE: str = "event_catalog"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGODB_MAX_POOL_SIZE: int = 20

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
