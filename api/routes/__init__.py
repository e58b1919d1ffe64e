"""API route modules."""

from routes.health_routes import router as health_router
from routes.notices_routes import router as notices_router

__all__ = [
    "health_router",
    "notices_router",
]
