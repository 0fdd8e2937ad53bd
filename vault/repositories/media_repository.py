"""Media metadata repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from common.logging_config import get_logger
from vault.database import get_db_connection

logger = get_logger(__name__)

_COLUMNS = "media_id, storage_key, display_name, iv, created_at"


@dataclass
class MediaRecord:
    media_id: str
    storage_key: str
    display_name: str
    iv: str
    created_at: datetime

    @property
    def iv_bytes(self) -> bytes:
        return bytes.fromhex(self.iv)


def _row_to_record(row: sqlite3.Row) -> MediaRecord:
    return MediaRecord(
        media_id=row["media_id"],
        storage_key=row["storage_key"],
        display_name=row["display_name"],
        iv=row["iv"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class MediaRepository:
    @staticmethod
    def insert_many(records: Sequence[MediaRecord], conn=None) -> None:
        """
        Insert records in a single transaction.
        """
        should_close = conn is None
        if conn is None:
            conn = get_db_connection().__enter__()

        try:
            cursor = conn.cursor()
            cursor.executemany(
                f"INSERT INTO media ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                [
                    (r.media_id, r.storage_key, r.display_name, r.iv, r.created_at.isoformat())
                    for r in records
                ]
            )
            if should_close:
                conn.commit()
            logger.debug(f"Inserted {len(records)} media records")
        except sqlite3.Error:
            if should_close:
                conn.rollback()
            raise
        finally:
            if should_close:
                conn.close()

    @staticmethod
    def get_by_id(media_id: str) -> Optional[MediaRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM media WHERE media_id = ?",
                (media_id,)
            )
            row = cursor.fetchone()

            if row is None:
                return None

            return _row_to_record(row)

    @staticmethod
    def find_by_ids(media_ids: Sequence[str]) -> List[MediaRecord]:
        """
        Fetch records for the given ids. Unknown ids are ignored; the result
        is in no particular order.
        """
        if not media_ids:
            return []

        placeholders = ",".join("?" for _ in media_ids)
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM media WHERE media_id IN ({placeholders})",
                tuple(media_ids)
            )
            return [_row_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def list_all(ascending: bool = False) -> List[MediaRecord]:
        order = "ASC" if ascending else "DESC"
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM media ORDER BY created_at {order}, rowid {order}")
            return [_row_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def delete_one(media_id: str) -> bool:
        """
        Delete a record.

        Returns:
            True if a record was removed
        """
        logger.debug(f"Deleting media record [media_id={media_id}]")
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM media WHERE media_id = ?", (media_id,))
            conn.commit()
            return cursor.rowcount > 0
