"""Repository implementations package."""
from .memory import InMemoryAnalyticsRepository, InMemoryContentRepository

__all__ = [
    "InMemoryAnalyticsRepository",
    "InMemoryContentRepository",
]
