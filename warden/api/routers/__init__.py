"""
Warden - API Routers
====================

Route handlers for the API.
"""

from .health import router as health_router
from .reports import router as reports_router
from .scores import router as scores_router
from .spam import router as spam_router

__all__ = [
    "health_router",
    "reports_router",
    "scores_router",
    "spam_router",
]
