"""API router package for endpoint composition."""

from .batches import api_create_batches_router
from .health import api_create_health_router

__all__ = ["api_create_batches_router", "api_create_health_router"]
