"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache
from typing import List

from fastapi import Depends

from discovery.config import get_settings
from discovery.core.cache import InMemoryCache
from discovery.core.circuit_breaker import CircuitBreaker
from discovery.models.interfaces import AnalyticsRepository, ContentRepository
from discovery.models.schemas import SearchResult
from discovery.repositories.memory import (
    InMemoryAnalyticsRepository,
    InMemoryContentRepository,
)
from discovery.services.discovery import DiscoveryService
from discovery.services.popularity import PopularityTracker
from discovery.services.search import SearchService


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_content_repository() -> ContentRepository:
    """Get singleton content repository."""
    return InMemoryContentRepository()


@lru_cache()
def get_analytics_repository() -> AnalyticsRepository:
    """Get singleton analytics repository."""
    return InMemoryAnalyticsRepository()


@lru_cache()
def get_search_cache() -> InMemoryCache[List[SearchResult]]:
    """Get singleton search result cache."""
    return InMemoryCache[List[SearchResult]](
        default_ttl_seconds=get_settings().SEARCH_CACHE_TTL_SEC
    )


@lru_cache()
def get_repository_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for the content repository."""
    settings = get_settings()
    return CircuitBreaker(
        name="content_repository",
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
    )


@lru_cache()
def get_popularity_tracker() -> PopularityTracker:
    """Get singleton popularity tracker."""
    return PopularityTracker(
        repository=get_analytics_repository(),
        interaction_log_size=get_settings().INTERACTION_LOG_SIZE,
    )


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_search_service(
    repository: ContentRepository = Depends(get_content_repository),
    cache: InMemoryCache[List[SearchResult]] = Depends(get_search_cache),
    circuit_breaker: CircuitBreaker = Depends(get_repository_circuit_breaker),
) -> SearchService:
    """Search service sharing the application-wide result cache."""
    return SearchService(
        repository=repository,
        cache=cache,
        circuit_breaker=circuit_breaker,
    )


def get_discovery_service(
    repository: ContentRepository = Depends(get_content_repository),
    search_service: SearchService = Depends(get_search_service),
    tracker: PopularityTracker = Depends(get_popularity_tracker),
    circuit_breaker: CircuitBreaker = Depends(get_repository_circuit_breaker),
) -> DiscoveryService:
    """
    Get discovery service with all dependencies wired.
    This is the entry point for every discovery endpoint.
    """
    return DiscoveryService(
        repository=repository,
        search_service=search_service,
        tracker=tracker,
        circuit_breaker=circuit_breaker,
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_content_repository.cache_clear()
    get_analytics_repository.cache_clear()
    get_search_cache.cache_clear()
    get_repository_circuit_breaker.cache_clear()
    get_popularity_tracker.cache_clear()
