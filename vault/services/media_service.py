"""Media service for business logic."""

import random
import sqlite3
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from common.constants import SORTABLE_VIDEO_EXTENSIONS
from common.logging_config import get_logger
from common.types import StoredObject
from vault.exceptions import DecryptionError, NotFoundError, PersistenceError
from vault.multipart import decode, extract_boundary, file_parts
from vault.object_store import ArchiveMember, EncryptedObjectStore
from vault.repositories.media_repository import MediaRecord, MediaRepository
from vault.utils import file_extension, generate_id, parse_ids

logger = get_logger(__name__)

SORT_OPTIONS = ("desc", "asc", "random", "gif", "video")
DEFAULT_SORT = "desc"


def _iv_bytes(record: MediaRecord) -> bytes:
    try:
        return record.iv_bytes
    except ValueError as e:
        raise DecryptionError(f"Stored IV for media {record.media_id} is not valid hex") from e


class MediaService:
    def __init__(self, store: EncryptedObjectStore, media_repo: Optional[MediaRepository] = None):
        self.store = store
        self.media_repo = media_repo or MediaRepository()

    def upload(self, body: bytes, content_type: Optional[str]) -> List[MediaRecord]:
        """
        Store every file part of a multipart body.

        All ciphertexts are written before any metadata is inserted; if
        anything fails, the files written so far are removed again.

        Args:
            body: Raw multipart/form-data request body
            content_type: Request Content-Type header (carries the boundary)

        Returns:
            Inserted media records, in body order

        Raises:
            MalformedInputError: If the Content-Type has no boundary
            PersistenceError: If a file or the metadata could not be saved
        """
        boundary = extract_boundary(content_type)
        parts = decode(body, boundary)

        written: List[StoredObject] = []
        try:
            for filename, data in file_parts(parts):
                stored = self.store.put(filename, data)
                written.append(stored)
                logger.info(f"Uploaded file: {filename} as {stored.storage_key}")

            records = [
                MediaRecord(
                    media_id=generate_id(),
                    storage_key=stored.storage_key,
                    display_name=stored.display_name,
                    iv=stored.iv.hex(),
                    created_at=stored.created_at,
                )
                for stored in written
            ]

            if records:
                try:
                    self.media_repo.insert_many(records)
                except sqlite3.Error as e:
                    raise PersistenceError(f"Failed to save media records: {e}") from e
                logger.info(f"Successfully saved {len(records)} file(s) to database")

        except Exception as e:
            logger.error(f"Upload failed after {len(written)} file(s): {e}")

            if written:
                logger.info(f"Cleaning up {len(written)} orphaned object(s)")
                self._cleanup_objects([stored.storage_key for stored in written])

            raise

        return records

    def _cleanup_objects(self, storage_keys: Sequence[str]) -> List[str]:
        """
        Remove objects whose metadata was never saved.

        Returns:
            Storage keys that could not be removed
        """
        failed = []
        for storage_key in storage_keys:
            try:
                self.store.remove(storage_key)
            except PersistenceError as e:
                logger.warning(f"Could not remove orphaned object {storage_key}: {e}")
                failed.append(storage_key)
        return failed

    def get_record(self, media_id: str) -> MediaRecord:
        try:
            record = self.media_repo.get_by_id(media_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load media record {media_id}: {e}") from e
        if record is None:
            raise NotFoundError(f"Media {media_id} not found")
        return record

    def download(self, media_id: str) -> Tuple[MediaRecord, bytes]:
        """
        Fetch and decrypt one media file.

        Raises:
            NotFoundError: If the record or its ciphertext file is missing
            DecryptionError: If the ciphertext does not decrypt
        """
        record = self.get_record(media_id)
        data = self.store.get(record.storage_key, _iv_bytes(record))
        return record, data

    def delete(self, media_id: str) -> MediaRecord:
        """
        Delete a media file and then its record.

        A ciphertext file that is already gone does not block removal of the
        record.

        Raises:
            NotFoundError: If no record exists
            PersistenceError: If the file or record cannot be deleted
        """
        record = self.get_record(media_id)

        if not self.store.remove(record.storage_key):
            logger.warning(f"File for media {media_id} was already absent [storage_key={record.storage_key}]")

        try:
            self.media_repo.delete_one(media_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete media record {media_id}: {e}") from e

        logger.info(f"Deleted media {media_id} ({record.display_name})")
        return record

    def delete_many(self, ids: Union[str, List[str]]) -> List[str]:
        """
        Delete several media files; unknown ids are skipped.

        Returns:
            Ids that were deleted
        """
        deleted = []
        for media_id in parse_ids(ids):
            try:
                self.delete(media_id)
            except NotFoundError:
                logger.warning(f"Skipping unknown media {media_id} in bulk delete")
                continue
            deleted.append(media_id)

        logger.info(f"Deleted files: {', '.join(deleted)}")
        return deleted

    def resolve_archive_members(self, ids: Union[str, List[str]]) -> List[ArchiveMember]:
        """
        Look up archive members in the order the ids were requested.
        """
        requested = parse_ids(ids)
        try:
            found = self.media_repo.find_by_ids(requested)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load media records: {e}") from e
        by_id = {record.media_id: record for record in found}

        members = []
        for media_id in requested:
            record = by_id.get(media_id)
            if record is None:
                logger.warning(f"Skipping unknown media {media_id} in bulk download")
                continue
            members.append(ArchiveMember(
                display_name=record.display_name,
                storage_key=record.storage_key,
                iv=_iv_bytes(record),
            ))
        return members

    def export_archive(self, ids: Union[str, List[str]]) -> Iterator[bytes]:
        """
        Stream a ZIP of the requested media.

        Metadata lookups happen before the first byte is produced, so
        lookup failures surface before a response has started.

        Args:
            ids: Media ids, in archive order

        Returns:
            Iterator of archive byte pieces
        """
        members = self.resolve_archive_members(ids)
        return self._stream_archive(members)

    def _stream_archive(self, members: List[ArchiveMember]) -> Iterator[bytes]:
        skipped: List[str] = []
        try:
            yield from self.store.iter_archive(members, skipped)
        except (DecryptionError, PersistenceError) as e:
            logger.error(f"Bulk download aborted: {e}")
            raise

        for storage_key in skipped:
            logger.warning(f"Ciphertext missing for {storage_key}, left out of archive")
        logger.info(f"Bulk download built with {len(members) - len(skipped)} file(s)")

    def list_media(self, sort: str = DEFAULT_SORT) -> List[MediaRecord]:
        """
        List all media for the gallery.

        Args:
            sort: One of SORT_OPTIONS; unknown values fall back to newest first

        Returns:
            Media records in display order
        """
        try:
            records = self.media_repo.list_all(ascending=(sort == "asc"))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list media: {e}") from e

        if sort == "random":
            random.shuffle(records)
        elif sort == "gif":
            records.sort(key=lambda r: file_extension(r.display_name) != ".gif")
        elif sort == "video":
            records.sort(key=lambda r: file_extension(r.display_name) not in SORTABLE_VIDEO_EXTENSIONS)

        return records
