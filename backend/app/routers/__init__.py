"""API routers."""

from app.routers.health import router as health_router
from app.routers.heatmap import router as heatmap_router

__all__ = [
    "health_router",
    "heatmap_router",
]
