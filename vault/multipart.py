"""Minimal multipart/form-data decoder working on a fully buffered body.

Parts are split on the boundary marker only; header interpretation (which
parts are files) is left to the caller. Parsing is best-effort: a part with
no blank line between headers and payload is dropped rather than rejected.
"""

import re
from typing import Iterable, Iterator, List, Optional, Tuple

from common.types import MultipartPart
from vault.exceptions import MalformedInputError

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
TERMINATOR = b"--"

_BOUNDARY_RE = re.compile(r'boundary=(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename="([^"]*)"')


def extract_boundary(content_type: Optional[str]) -> str:
    """
    Read the boundary token from a Content-Type header value.

    Args:
        content_type: e.g. 'multipart/form-data; boundary=----abc'

    Returns:
        Boundary token without quotes

    Raises:
        MalformedInputError: If the header is missing or has no boundary parameter
    """
    if not content_type:
        raise MalformedInputError("Invalid form-data: missing Content-Type")

    match = _BOUNDARY_RE.search(content_type)
    if not match:
        raise MalformedInputError("Invalid form-data: No boundary found")

    return match.group(1) or match.group(2)


def decode(body: bytes, boundary: str) -> List[MultipartPart]:
    """
    Split a multipart body into its parts.

    Args:
        body: Complete request body
        boundary: Boundary token from the Content-Type header

    Returns:
        Parts in body order; empty if the boundary never appears
    """
    marker = b"--" + boundary.encode("utf-8")
    parts = []

    start = body.find(marker)
    if start == -1:
        return parts
    start += len(marker)

    while True:
        end = body.find(marker, start)
        if end == -1:
            break

        segment = body[start:end]
        if segment.startswith(CRLF):
            segment = segment[2:]
        if segment.endswith(CRLF):
            segment = segment[:-2]

        header_end = segment.find(HEADER_SEPARATOR)
        if header_end != -1:
            parts.append(MultipartPart(
                header_text=segment[:header_end].decode("utf-8", errors="replace"),
                raw_data=segment[header_end + len(HEADER_SEPARATOR):],
            ))

        start = end + len(marker)
        if body[start:start + 2] == TERMINATOR:
            break

    return parts


def parse_filename(header_text: str) -> Optional[str]:
    """
    Get the filename from a part's Content-Disposition header.

    Args:
        header_text: Raw header block of one part

    Returns:
        Filename, or None for non-file fields and empty filenames
    """
    if "content-disposition" not in header_text.lower():
        return None

    match = _FILENAME_RE.search(header_text)
    if not match or not match.group(1):
        return None
    return match.group(1)


def file_parts(parts: Iterable[MultipartPart]) -> Iterator[Tuple[str, bytes]]:
    """
    Yield (filename, data) for every part that carries a file.

    Args:
        parts: Decoded parts

    Yields:
        Tuples of filename and raw payload
    """
    for part in parts:
        filename = parse_filename(part.header_text)
        if filename is not None:
            yield filename, part.raw_data
