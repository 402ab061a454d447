"""API routes for Agro Canvas."""

from agro_canvas.routes.preferences import router as preferences_router
from agro_canvas.routes.projects import router as projects_router
from agro_canvas.routes.storage import router as storage_router
from agro_canvas.routes.transfer import router as transfer_router

__all__ = [
    "preferences_router",
    "projects_router",
    "storage_router",
    "transfer_router",
]
