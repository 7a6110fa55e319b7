"""Service-wide settings.

Values are read from environment variables prefixed with ``CHECKOUTREC_``
(or a local ``.env`` file) and fall back to the library defaults.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.recommender.affinity import (
    DEFAULT_LIMIT,
    DEFAULT_TOP_CATEGORIES,
    QUALIFYING_STATUSES,
)
from src.checkout.fields import ELECTRONIC_CATEGORY_SLUGS


class Settings(BaseSettings):
    """CheckoutRec settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHECKOUTREC_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "CheckoutRec API"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Commerce store export
    DATA_DIR: str = "data"

    # Recommender
    QUALIFYING_STATUSES: List[str] = list(QUALIFYING_STATUSES)
    TOP_CATEGORY_COUNT: int = DEFAULT_TOP_CATEGORIES
    RECOMMENDATION_LIMIT: int = DEFAULT_LIMIT
    BLOCK_TITLE: str = "You Might Also Like"

    # Checkout fields
    ELECTRONIC_CATEGORY_SLUGS: List[str] = sorted(ELECTRONIC_CATEGORY_SLUGS)


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
