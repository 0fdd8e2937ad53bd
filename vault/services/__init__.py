"""Service layer for business logic."""

from vault.services.media_service import MediaService

__all__ = [
    "MediaService",
]
