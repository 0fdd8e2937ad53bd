"""Repository layer for data access."""

from vault.repositories.media_repository import MediaRecord, MediaRepository

__all__ = [
    "MediaRecord",
    "MediaRepository",
]
