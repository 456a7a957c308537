"""
app/api/routers package marker.
"""

from app.api.routers.adaptation import router as adaptation_router
from app.api.routers.ingestion import router as ingestion_router
from app.api.routers.templates import router as templates_router

__all__ = [
    "adaptation_router",
    "ingestion_router",
    "templates_router",
]
