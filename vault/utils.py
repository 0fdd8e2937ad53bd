"""Utility helper functions for the media vault."""

import uuid
from pathlib import PurePosixPath
from typing import List, Union
from urllib.parse import quote

from common.constants import VIDEO_EXTENSIONS

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


def generate_id() -> str:
    """
    Generate a new opaque media id.

    Returns:
        32-character hex string
    """
    return uuid.uuid4().hex


def parse_ids(ids: Union[str, List[str], None]) -> List[str]:
    """
    Normalize ids given as a list or a comma-separated string.

    Duplicates are dropped, keeping the first occurrence.

    Args:
        ids: e.g. "a,b,c" or ["a", "b"]

    Returns:
        List of trimmed, unique ids in their original order
    """
    if ids is None:
        return []
    if isinstance(ids, str):
        ids = ids.split(',')

    seen = set()
    result = []
    for media_id in ids:
        media_id = media_id.strip()
        if media_id and media_id not in seen:
            seen.add(media_id)
            result.append(media_id)
    return result


def file_extension(name: str) -> str:
    return PurePosixPath(name.replace("\\", "/")).suffix.lower()


def media_kind(name: str) -> str:
    """
    Classify a file as 'video' or 'image' by extension.
    """
    return "video" if file_extension(name) in VIDEO_EXTENSIONS else "image"


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(file_extension(name), "application/octet-stream")


def content_disposition(name: str, inline: bool = False) -> str:
    """
    Build a Content-Disposition header value safe for non-ASCII names.

    Args:
        name: Filename to advertise
        inline: Display in the browser instead of downloading

    Returns:
        Header value with an ASCII fallback and an RFC 5987 filename*
    """
    disposition = "inline" if inline else "attachment"
    fallback = name.encode("ascii", errors="replace").decode("ascii")
    fallback = "".join(c for c in fallback if c.isprintable()).replace('"', "'")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"
