"""Service locator for the process-wide media service."""

from pathlib import Path
from typing import Optional

from vault.crypto import BlockCipherCodec
from vault.object_store import EncryptedObjectStore
from vault.services.media_service import MediaService

_media_service: Optional[MediaService] = None


def build_media_service(content_dir: str, secret_key: str) -> MediaService:
    """
    Wire the codec, object store and service from configuration values.

    Raises:
        RuntimeError: If no secret key is configured
    """
    if not secret_key:
        raise RuntimeError("VAULT_SECRET_KEY must be set")

    codec = BlockCipherCodec.from_passphrase(secret_key)
    store = EncryptedObjectStore(Path(content_dir), codec)
    store.ensure_content_directory()
    return MediaService(store)


def set_media_service(service: Optional[MediaService]):
    """Set global media service instance"""
    global _media_service
    _media_service = service


def get_media_service() -> MediaService:
    """
    Get global media service instance (usable as a FastAPI dependency).

    Raises:
        RuntimeError: If the service was not initialized at startup
    """
    if _media_service is None:
        raise RuntimeError("Media service is not initialized")
    return _media_service
