"""Core infrastructure components."""
from .cache import CacheInterface, InMemoryCache
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    CircuitBreakerOpenError,
    DiscoveryUnavailableError,
    NotFoundError,
)

__all__ = [
    "AppException",
    "CacheInterface",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "DiscoveryUnavailableError",
    "InMemoryCache",
    "NotFoundError",
]
