"""Routers package - API endpoint routers."""
from .health import router as health_router
from .rounds import router as rounds_router
from .jobs import router as jobs_router

__all__ = [
    "health_router",
    "rounds_router",
    "jobs_router",
]
