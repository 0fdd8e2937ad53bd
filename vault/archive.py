"""Store-only ZIP writer that emits entries incrementally into a sink.

Layout per entry: local file header, name, raw data. After the last entry
the central directory (one record per entry, in append order) and the
end-of-central-directory record are written. Every integer is little-endian.
No compression, no data descriptors and no ZIP64.
"""

import enum
import struct
from typing import BinaryIO, Iterable, List, Tuple

from common.checksum import crc32
from common.types import ZipEntryDescriptor
from vault.exceptions import InvalidStateError

LOCAL_HEADER_SIGNATURE = 0x04034B50
CENTRAL_HEADER_SIGNATURE = 0x02014B50
END_OF_CENTRAL_DIR_SIGNATURE = 0x06054B50

ZIP_VERSION = 20
METHOD_STORE = 0

# signature, version needed, flags, method, mod time, mod date, crc, compressed size,
# uncompressed size, name length, extra length
LOCAL_HEADER_STRUCT = struct.Struct("<IHHHHHIIIHH")
# signature, version made by, version needed, flags, method, mod time, mod date, crc,
# compressed size, uncompressed size, name length, extra length, comment length,
# disk number start, internal attributes, external attributes, local header offset
CENTRAL_HEADER_STRUCT = struct.Struct("<IHHHHHHIIIHHHHHII")
# signature, this disk, central directory disk, entries on disk, total entries,
# central directory size, central directory offset, comment length
END_OF_CENTRAL_DIR_STRUCT = struct.Struct("<IHHHHIIH")

MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF


class ArchiveState(enum.Enum):
    OPEN = "open"
    APPENDING = "appending"
    FINALIZED = "finalized"


class ArchiveBuffer:
    """
    In-memory sink whose contents can be drained piece by piece.

    Lets a streaming response forward whatever the encoder wrote since the
    previous drain without holding the whole archive in memory.
    """

    def __init__(self):
        self._pieces: List[bytes] = []

    def write(self, data: bytes) -> int:
        if data:
            self._pieces.append(bytes(data))
        return len(data)

    def drain(self) -> bytes:
        data = b"".join(self._pieces)
        self._pieces = []
        return data


class ArchiveEncoder:
    """
    Writes a ZIP archive to a sink one entry at a time.

    The encoder keeps a running byte offset of everything it has written so
    the central directory can point at each local header.
    """

    def __init__(self, sink: BinaryIO):
        self._sink = sink
        self._offset = 0
        self._entries: List[ZipEntryDescriptor] = []
        self._state = ArchiveState.OPEN

    @property
    def state(self) -> ArchiveState:
        return self._state

    @property
    def offset(self) -> int:
        """Number of bytes written to the sink so far."""
        return self._offset

    def _write(self, data: bytes) -> None:
        self._sink.write(data)
        self._offset += len(data)

    def append(self, name: str, data: bytes) -> ZipEntryDescriptor:
        """
        Write one stored entry.

        Args:
            name: Entry name inside the archive
            data: Uncompressed entry contents

        Returns:
            Descriptor recorded for the central directory

        Raises:
            InvalidStateError: If the archive was already finished
            ValueError: If the entry does not fit the non-ZIP64 format
        """
        if self._state is ArchiveState.FINALIZED:
            raise InvalidStateError("Cannot append to a finished archive")

        name_bytes = name.encode("utf-8")
        if len(name_bytes) > MAX_UINT16:
            raise ValueError(f"Entry name is {len(name_bytes)} bytes, limit is {MAX_UINT16}")
        if len(data) > MAX_UINT32:
            raise ValueError(f"Entry '{name}' is {len(data)} bytes, ZIP64 is not supported")
        if len(self._entries) >= MAX_UINT16:
            raise ValueError(f"Archive cannot hold more than {MAX_UINT16} entries")

        entry_length = LOCAL_HEADER_STRUCT.size + len(name_bytes) + len(data)
        if self._offset + entry_length > MAX_UINT32:
            raise ValueError("Archive would exceed 4 GiB, ZIP64 is not supported")

        checksum = crc32(data)
        descriptor = ZipEntryDescriptor(
            name=name,
            crc32=checksum,
            uncompressed_size=len(data),
            start_offset=self._offset,
        )

        header = LOCAL_HEADER_STRUCT.pack(
            LOCAL_HEADER_SIGNATURE,
            ZIP_VERSION,
            0,
            METHOD_STORE,
            0,
            0,
            checksum,
            len(data),
            len(data),
            len(name_bytes),
            0,
        )
        self._write(header + name_bytes)
        self._write(data)

        self._entries.append(descriptor)
        self._state = ArchiveState.APPENDING
        return descriptor

    def finish(self) -> int:
        """
        Write the central directory and end record.

        Returns:
            Total archive length in bytes

        Raises:
            InvalidStateError: If the archive was already finished
        """
        if self._state is ArchiveState.FINALIZED:
            raise InvalidStateError("Archive is already finished")

        directory_offset = self._offset

        for entry in self._entries:
            name_bytes = entry.name.encode("utf-8")
            record = CENTRAL_HEADER_STRUCT.pack(
                CENTRAL_HEADER_SIGNATURE,
                ZIP_VERSION,
                ZIP_VERSION,
                0,
                METHOD_STORE,
                0,
                0,
                entry.crc32,
                entry.uncompressed_size,
                entry.uncompressed_size,
                len(name_bytes),
                0,
                0,
                0,
                0,
                0,
                entry.start_offset,
            )
            self._write(record + name_bytes)

        directory_size = self._offset - directory_offset

        self._write(END_OF_CENTRAL_DIR_STRUCT.pack(
            END_OF_CENTRAL_DIR_SIGNATURE,
            0,
            0,
            len(self._entries),
            len(self._entries),
            directory_size,
            directory_offset,
            0,
        ))

        self._state = ArchiveState.FINALIZED
        return self._offset


def build_archive(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """
    Build a complete archive in memory.

    Args:
        entries: (name, data) pairs in archive order

    Returns:
        ZIP archive bytes
    """
    sink = ArchiveBuffer()
    encoder = ArchiveEncoder(sink)
    for name, data in entries:
        encoder.append(name, data)
    encoder.finish()
    return sink.drain()
