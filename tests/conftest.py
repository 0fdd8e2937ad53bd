"""Shared pytest fixtures for all tests."""

from typing import List, Optional, Tuple

import pytest

from vault.crypto import BlockCipherCodec
from vault.database import init_database
from vault.object_store import EncryptedObjectStore
from vault.services.media_service import MediaService

TEST_PASSPHRASE = "unit-test-secret"


@pytest.fixture
def codec():
    """
    Create a codec with a fixed test key.

    Returns:
        BlockCipherCodec instance
    """
    return BlockCipherCodec.from_passphrase(TEST_PASSPHRASE)


@pytest.fixture
def content_dir(tmp_path):
    """
    Path of a temporary content directory (created on first write).

    Args:
        tmp_path: pytest tmp_path fixture
    """
    return tmp_path / 'uploads'


@pytest.fixture
def store(content_dir, codec):
    """
    Create an object store in the temporary content directory.
    """
    return EncryptedObjectStore(content_dir, codec)


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """
    Create a temporary metadata database for each test.

    Returns:
        Path to the SQLite file
    """
    db_path = tmp_path / 'data' / 'metadata.db'
    monkeypatch.setattr("vault.database.DATABASE_PATH", str(db_path))
    init_database()
    return db_path


@pytest.fixture
def media_service(store, test_db):
    """
    Create a media service backed by the temporary store and database.
    """
    return MediaService(store)


@pytest.fixture
def make_multipart():
    """
    Factory building a multipart/form-data body.

    Each part is (field_name, filename_or_None, data). The returned body is
    laid out the way browsers send it, ending with the closing boundary.
    """
    def _make(parts: List[Tuple[str, Optional[str], bytes]], boundary: str = 'xyz') -> bytes:
        body = b''
        for field_name, filename, data in parts:
            disposition = f'Content-Disposition: form-data; name="{field_name}"'
            if filename is not None:
                disposition += f'; filename="{filename}"'
                headers = disposition + '\r\nContent-Type: application/octet-stream'
            else:
                headers = disposition
            body += f'--{boundary}\r\n{headers}\r\n\r\n'.encode('utf-8') + data + b'\r\n'
        body += f'--{boundary}--\r\n'.encode('utf-8')
        return body

    return _make
