"""
Liveness and readiness probes.
"""
from fastapi import APIRouter, Depends

from discovery.api.dependencies import get_repository_circuit_breaker, get_search_cache
from discovery.config import get_settings
from discovery.core.cache import InMemoryCache
from discovery.core.circuit_breaker import CircuitBreaker, CircuitState

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness")
async def health_check() -> dict:
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness")
async def readiness_check(
    circuit_breaker: CircuitBreaker = Depends(get_repository_circuit_breaker),
    search_cache: InMemoryCache = Depends(get_search_cache),
) -> dict:
    """
    Report whether the content source is reachable and how the search
    cache is doing. An open breaker marks the service as degraded: cached
    searches and tracking still work, everything else answers 503.
    """
    state = circuit_breaker.state
    return {
        "status": "degraded" if state == CircuitState.OPEN else "ready",
        "circuit_breaker": {"name": circuit_breaker.name, "state": state.value},
        "search_cache": {
            "ttl_seconds": get_settings().SEARCH_CACHE_TTL_SEC,
            **search_cache.stats(),
        },
    }
