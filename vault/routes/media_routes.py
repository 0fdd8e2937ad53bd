"""Media operation API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from common.constants import ARCHIVE_FILENAME
from common.logging_config import get_logger
from vault.auth import require_password
from vault.config import MAX_UPLOAD_SIZE
from vault.schemas.media import (
    DeleteMediaResponse,
    ListMediaResponse,
    MediaIdsRequest,
    MediaMetadataResponse,
    UploadResponse
)
from vault.service_locator import get_media_service
from vault.services.media_service import DEFAULT_SORT, SORT_OPTIONS, MediaService
from vault.utils import content_disposition, content_type_for, parse_ids

logger = get_logger(__name__)

router = APIRouter(tags=["Media"], dependencies=[Depends(require_password)])


def _payload_too_large() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"Upload exceeds the {MAX_UPLOAD_SIZE} byte limit"
    )


@router.get("/media", response_model=ListMediaResponse)
def list_media(
    sort: str = Query(DEFAULT_SORT, description="desc, asc, random, gif or video"),
    media_service: MediaService = Depends(get_media_service)
):
    """
    List stored media for the gallery.

    Parameters:
        - sort: Display order; unknown values fall back to 'desc'
        - X-Password header or password query parameter (required)

    Returns:
        - sort: Order actually applied
        - files: Media metadata with 'image' or 'video' kind
    """
    if sort not in SORT_OPTIONS:
        sort = DEFAULT_SORT

    records = media_service.list_media(sort)

    return ListMediaResponse(
        sort=sort,
        files=[MediaMetadataResponse.from_record(record) for record in records],
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    request: Request,
    media_service: MediaService = Depends(get_media_service)
):
    """
    Upload one or more files as a raw multipart/form-data body.

    Every part with a filename is encrypted and stored; other form fields
    are ignored.

    Raises:
        - 400: No multipart boundary in Content-Type
        - 401: Invalid or missing password
        - 413: Body larger than the configured limit
        - 500: Ciphertext or metadata could not be saved
    """
    declared_length = request.headers.get("content-length")
    if declared_length and declared_length.isdigit() and int(declared_length) > MAX_UPLOAD_SIZE:
        raise _payload_too_large()

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > MAX_UPLOAD_SIZE:
            raise _payload_too_large()
        chunks.append(chunk)

    body = b"".join(chunks)
    logger.info(f"Upload started ({received} bytes)")

    records = await run_in_threadpool(
        media_service.upload,
        body,
        request.headers.get("content-type"),
    )

    return UploadResponse(
        uploaded_count=len(records),
        files=[MediaMetadataResponse.from_record(record) for record in records],
    )


@router.get("/download/{media_id}")
def download_media(
    media_id: str,
    inline: bool = Query(False, description="Display in the browser instead of downloading"),
    media_service: MediaService = Depends(get_media_service)
):
    """
    Download one decrypted file.

    Raises:
        - 401: Invalid or missing password
        - 404: Unknown media id or missing ciphertext
        - 500: Decryption failed
    """
    record, data = media_service.download(media_id)

    return Response(
        content=data,
        media_type=content_type_for(record.display_name),
        headers={"Content-Disposition": content_disposition(record.display_name, inline=inline)},
    )


@router.delete("/media/{media_id}", response_model=DeleteMediaResponse)
def delete_media(
    media_id: str,
    media_service: MediaService = Depends(get_media_service)
):
    """
    Delete one file and its record.

    Raises:
        - 401: Invalid or missing password
        - 404: Unknown media id
    """
    media_service.delete(media_id)
    return DeleteMediaResponse(deleted_count=1, media_ids=[media_id])


@router.post("/media/delete", response_model=DeleteMediaResponse)
def delete_media_bulk(
    request: MediaIdsRequest,
    media_service: MediaService = Depends(get_media_service)
):
    """
    Delete several files; unknown ids are skipped.

    Parameters:
        - ids: List of media ids or a comma-separated string
    """
    deleted = media_service.delete_many(request.ids)
    return DeleteMediaResponse(deleted_count=len(deleted), media_ids=deleted)


@router.post("/download/bulk")
def download_bulk(
    request: MediaIdsRequest,
    media_service: MediaService = Depends(get_media_service)
):
    """
    Download several decrypted files as one ZIP archive (store method).

    Entries appear in the order of the requested ids; unknown ids and
    missing files are left out.

    Raises:
        - 400: No ids given
        - 401: Invalid or missing password
    """
    ids = parse_ids(request.ids)
    if not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file IDs provided"
        )

    stream = media_service.export_archive(ids)

    return StreamingResponse(
        stream,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
    )
