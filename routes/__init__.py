"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.trends import router as trends_router
from routes.favorites import router as favorites_router
from routes.alerts import router as alerts_router

__all__ = [
    "trends_router",
    "favorites_router",
    "alerts_router",
]
