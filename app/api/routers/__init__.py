"""
app/api/routers package marker.
"""

from app.api.routers.component_import import router as component_import_router

__all__ = [
    "component_import_router",
]
