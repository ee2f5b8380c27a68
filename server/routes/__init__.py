"""API routes package."""

from server.routes.dav_routes import router as dav_router

__all__ = ["dav_router"]
