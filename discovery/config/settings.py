"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Content Discovery API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Search Result Cache
    SEARCH_CACHE_TTL_SEC: int = 600  # 10 minutes

    # Suggestions
    SUGGESTION_MIN_QUERY_LENGTH: int = 2
    DEFAULT_SUGGESTION_LIMIT: int = 5

    # Result limits
    DEFAULT_RELATED_LIMIT: int = 5
    DEFAULT_RECOMMENDATION_LIMIT: int = 10
    DEFAULT_TRENDING_LIMIT: int = 10
    MAX_RESULT_LIMIT: int = 50

    # Popularity Tracker
    INTERACTION_LOG_SIZE: int = 10000

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Circuit Breaker (content repository boundary)
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()
