"""API package - FastAPI routes and dependencies."""
from .dependencies import get_discovery_service
from .routers import discovery_router, health_router

__all__ = ["discovery_router", "get_discovery_service", "health_router"]
