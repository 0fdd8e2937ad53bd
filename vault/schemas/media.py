"""Pydantic schemas for media endpoints."""

from typing import List, Union
from pydantic import BaseModel

from vault.repositories.media_repository import MediaRecord
from vault.utils import media_kind


class MediaMetadataResponse(BaseModel):
    """Response model for one media item."""
    media_id: str
    display_name: str
    created_at: str
    kind: str

    @classmethod
    def from_record(cls, record: MediaRecord) -> 'MediaMetadataResponse':
        return cls(
            media_id=record.media_id,
            display_name=record.display_name,
            created_at=record.created_at.isoformat(),
            kind=media_kind(record.display_name),
        )


class ListMediaResponse(BaseModel):
    """Response model for the gallery listing."""
    sort: str
    files: List[MediaMetadataResponse]


class UploadResponse(BaseModel):
    """Response model for multipart upload."""
    uploaded_count: int
    files: List[MediaMetadataResponse]


class MediaIdsRequest(BaseModel):
    """Request model for bulk operations; ids may be a list or a comma-separated string."""
    ids: Union[List[str], str]


class DeleteMediaResponse(BaseModel):
    """Response model for deletion."""
    deleted_count: int
    media_ids: List[str]
