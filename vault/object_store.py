"""Manages encrypted object files on disk: write, read-decrypt, delete, archive export."""

import time
import uuid
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, NamedTuple, Optional

from common.types import StoredObject
from vault.archive import ArchiveBuffer, ArchiveEncoder
from vault.crypto import BlockCipherCodec
from vault.exceptions import NotFoundError, PersistenceError

# UTF-8 bytes of the display name kept in a storage key (filenames are capped at 255 bytes)
MAX_NAME_SUFFIX_BYTES = 120


class ArchiveMember(NamedTuple):
    """Reference to one stored object to include in an export."""
    display_name: str
    storage_key: str
    iv: bytes


def make_storage_key(display_name: str) -> str:
    """
    Build a unique on-disk name for an object.

    The timestamp and random token make the key unique on their own; the
    sanitized display name is only appended for readability.

    Args:
        display_name: Original uploaded filename

    Returns:
        Storage key such as '1718000000000-3f2a9c1b7d4e-photo.jpg'
    """
    safe_name = display_name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    safe_name = safe_name.replace("\x00", "")
    # keep the tail so the extension survives; drop a split leading character
    safe_name = safe_name.encode("utf-8")[-MAX_NAME_SUFFIX_BYTES:].decode("utf-8", "ignore")
    if safe_name in ("", ".", ".."):
        safe_name = "file"
    return f"{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:12]}-{safe_name}"


class EncryptedObjectStore:
    """
    Stores ciphertext files in a content directory.

    The IV returned by put() is not written to disk; callers keep it in the
    metadata record and hand it back to get().
    """

    def __init__(self, content_dir: Path, codec: BlockCipherCodec):
        self.content_dir = Path(content_dir)
        self.codec = codec

    def ensure_content_directory(self) -> None:
        """Ensure content directory exists."""
        try:
            self.content_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create content directory {self.content_dir}: {e}") from e

    def get_object_path(self, storage_key: str) -> Path:
        """
        Get file path for a storage key.

        Raises:
            NotFoundError: If the key could resolve outside the content directory
        """
        if not storage_key or "/" in storage_key or "\\" in storage_key or storage_key in (".", ".."):
            raise NotFoundError(f"Invalid storage key: {storage_key!r}")
        return self.content_dir / storage_key

    def put(self, display_name: str, plaintext: bytes) -> StoredObject:
        """
        Encrypt and persist a buffer.

        Args:
            display_name: Name shown to the user
            plaintext: File contents

        Returns:
            StoredObject describing the written ciphertext

        Raises:
            PersistenceError: If the ciphertext could not be written completely
        """
        self.ensure_content_directory()
        iv, ciphertext = self.codec.encrypt(plaintext)

        storage_key = make_storage_key(display_name)
        filepath = self.get_object_path(storage_key)

        try:
            # 'x' refuses to replace an existing object
            with open(filepath, "xb") as f:
                f.write(ciphertext)
        except FileExistsError as e:
            raise PersistenceError(f"Storage key collision for {storage_key}") from e
        except OSError as e:
            with suppress(OSError):
                filepath.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {storage_key}: {e}") from e

        return StoredObject(
            storage_key=storage_key,
            display_name=display_name,
            iv=iv,
            created_at=datetime.now(timezone.utc),
            size=len(ciphertext),
        )

    def get(self, storage_key: str, iv: bytes) -> bytes:
        """
        Read and decrypt an object.

        Raises:
            NotFoundError: If the ciphertext file is absent
            DecryptionError: If the ciphertext does not decrypt under the configured key
            PersistenceError: If the file exists but cannot be read
        """
        filepath = self.get_object_path(storage_key)
        try:
            ciphertext = filepath.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"Object {storage_key} not found") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read {storage_key}: {e}") from e

        return self.codec.decrypt(ciphertext, iv)

    def remove(self, storage_key: str) -> bool:
        """
        Delete an object file.

        Returns:
            True if file was deleted, False if it didn't exist

        Raises:
            PersistenceError: If the file exists but cannot be deleted
        """
        filepath = self.get_object_path(storage_key)
        try:
            filepath.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Failed to delete {storage_key}: {e}") from e
        return True

    def export_archive(self, members: Iterable[ArchiveMember], sink: BinaryIO) -> List[str]:
        """
        Write a ZIP of decrypted objects to a sink.

        Members whose ciphertext file is missing are skipped; decryption and
        I/O failures abort the export.

        Args:
            members: Objects in the order they should appear in the archive
            sink: Writable binary target

        Returns:
            Storage keys that were skipped because their file was missing
        """
        encoder = ArchiveEncoder(sink)
        skipped = []
        for member in members:
            try:
                data = self.get(member.storage_key, member.iv)
            except NotFoundError:
                skipped.append(member.storage_key)
                continue
            encoder.append(member.display_name, data)
        encoder.finish()
        return skipped

    def iter_archive(
        self,
        members: Iterable[ArchiveMember],
        skipped: Optional[List[str]] = None
    ) -> Iterator[bytes]:
        """
        Stream a ZIP of decrypted objects, one piece per entry.

        Same skip/abort rules as export_archive(). Keys of missing files are
        appended to `skipped` when a list is given.

        Yields:
            Archive bytes written since the previous piece
        """
        buffer = ArchiveBuffer()
        encoder = ArchiveEncoder(buffer)
        for member in members:
            try:
                data = self.get(member.storage_key, member.iv)
            except NotFoundError:
                if skipped is not None:
                    skipped.append(member.storage_key)
                continue
            encoder.append(member.display_name, data)
            yield buffer.drain()
        encoder.finish()
        yield buffer.drain()
