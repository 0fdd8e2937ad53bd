"""Pydantic schemas for API requests and responses."""

from vault.schemas.media import (
    MediaMetadataResponse,
    ListMediaResponse,
    UploadResponse,
    MediaIdsRequest,
    DeleteMediaResponse
)
from vault.schemas.common import ErrorResponse

__all__ = [
    "MediaMetadataResponse",
    "ListMediaResponse",
    "UploadResponse",
    "MediaIdsRequest",
    "DeleteMediaResponse",
    "ErrorResponse"
]
