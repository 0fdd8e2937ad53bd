"""Shared data type definitions (StoredObject, MultipartPart, ZipEntryDescriptor)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredObject:
    """
    An encrypted object persisted in the content directory.

    The ciphertext lives in a file named after storage_key; the IV is kept
    by the caller in the metadata record.
    """
    storage_key: str
    display_name: str
    iv: bytes
    created_at: datetime
    size: int


@dataclass(frozen=True)
class MultipartPart:
    """
    One segment of a multipart/form-data body.
    """
    header_text: str
    raw_data: bytes


@dataclass(frozen=True)
class ZipEntryDescriptor:
    """
    Per-entry bookkeeping needed to write the ZIP central directory.
    """
    name: str
    crc32: int
    uncompressed_size: int
    start_offset: int
