"""API routes package."""

from vault.routes.media_routes import router as media_router

__all__ = ["media_router"]
