"""API routes package."""

from tracker.routes.peer_routes import router as peer_router
from tracker.routes.file_routes import router as file_router

__all__ = ["peer_router", "file_router"]
