"""Tests for the media service orchestration."""

import io
import sqlite3
import zipfile

import pytest

from vault.database import get_db_connection
from vault.exceptions import DecryptionError, MalformedInputError, NotFoundError, PersistenceError
from vault.repositories.media_repository import MediaRepository

CONTENT_TYPE = 'multipart/form-data; boundary=xyz'


def upload_files(media_service, make_multipart, files):
    body = make_multipart([('file', name, data) for name, data in files])
    return media_service.upload(body, CONTENT_TYPE)


class TestUpload:
    """Test multipart upload handling."""

    def test_upload_stores_file_parts_only(self, media_service, make_multipart, content_dir):
        body = make_multipart([
            ('file', 'a.txt', b'hello'),
            ('password', None, b'should not be stored'),
            ('file', 'b.gif', b'GIF89a'),
        ])

        records = media_service.upload(body, CONTENT_TYPE)

        assert [r.display_name for r in records] == ['a.txt', 'b.gif']
        assert len(list(content_dir.iterdir())) == 2
        assert MediaRepository.get_by_id(records[0].media_id) == records[0]
        assert len(bytes.fromhex(records[0].iv)) == 16

    def test_upload_without_boundary(self, media_service):
        with pytest.raises(MalformedInputError):
            media_service.upload(b'whatever', 'application/octet-stream')

    def test_upload_with_unknown_boundary_stores_nothing(self, media_service, make_multipart):
        body = make_multipart([('file', 'a.txt', b'hello')], boundary='real')
        assert media_service.upload(body, 'multipart/form-data; boundary=other') == []
        assert MediaRepository.list_all() == []

    def test_metadata_failure_removes_written_files(self, media_service, make_multipart, content_dir, monkeypatch):
        def failing_insert(records, conn=None):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(media_service.media_repo, 'insert_many', failing_insert)

        with pytest.raises(PersistenceError):
            upload_files(media_service, make_multipart, [('a.txt', b'one'), ('b.txt', b'two')])

        assert list(content_dir.iterdir()) == []

    def test_write_failure_removes_earlier_files(self, media_service, make_multipart, content_dir, monkeypatch):
        original_put = media_service.store.put
        calls = []

        def flaky_put(display_name, plaintext):
            calls.append(display_name)
            if len(calls) == 2:
                raise PersistenceError("disk full")
            return original_put(display_name, plaintext)

        monkeypatch.setattr(media_service.store, 'put', flaky_put)

        with pytest.raises(PersistenceError):
            upload_files(media_service, make_multipart, [('a.txt', b'one'), ('b.txt', b'two')])

        assert list(content_dir.iterdir()) == []
        assert MediaRepository.list_all() == []


class TestDownload:
    """Test single-file retrieval."""

    def test_download(self, media_service, make_multipart):
        [record] = upload_files(media_service, make_multipart, [('photo.png', b'\x89PNG data')])

        loaded, data = media_service.download(record.media_id)

        assert loaded.display_name == 'photo.png'
        assert data == b'\x89PNG data'

    def test_download_unknown_id(self, media_service):
        with pytest.raises(NotFoundError):
            media_service.download('does-not-exist')

    def test_download_missing_file(self, media_service, make_multipart):
        [record] = upload_files(media_service, make_multipart, [('a.txt', b'hello')])
        media_service.store.remove(record.storage_key)

        with pytest.raises(NotFoundError):
            media_service.download(record.media_id)

    def test_download_with_corrupt_iv(self, media_service, make_multipart):
        [record] = upload_files(media_service, make_multipart, [('a.txt', b'hello')])
        with get_db_connection() as conn:
            conn.execute("UPDATE media SET iv = ? WHERE media_id = ?", ('not-hex', record.media_id))
            conn.commit()

        with pytest.raises(DecryptionError):
            media_service.download(record.media_id)


class TestDelete:
    """Test single and bulk deletion."""

    def test_delete_removes_file_then_record(self, media_service, make_multipart, content_dir):
        [record] = upload_files(media_service, make_multipart, [('a.txt', b'hello')])

        media_service.delete(record.media_id)

        assert not (content_dir / record.storage_key).exists()
        assert MediaRepository.get_by_id(record.media_id) is None

    def test_delete_with_missing_file_still_removes_record(self, media_service, make_multipart):
        [record] = upload_files(media_service, make_multipart, [('a.txt', b'hello')])
        media_service.store.remove(record.storage_key)

        media_service.delete(record.media_id)

        assert MediaRepository.get_by_id(record.media_id) is None

    def test_delete_unknown(self, media_service):
        with pytest.raises(NotFoundError):
            media_service.delete('does-not-exist')

    def test_delete_many_skips_unknown(self, media_service, make_multipart):
        records = upload_files(media_service, make_multipart, [('a.txt', b'1'), ('b.txt', b'2'), ('c.txt', b'3')])

        deleted = media_service.delete_many([records[0].media_id, 'unknown', records[2].media_id])

        assert deleted == [records[0].media_id, records[2].media_id]
        assert [r.media_id for r in MediaRepository.list_all()] == [records[1].media_id]

    def test_delete_many_accepts_comma_string(self, media_service, make_multipart):
        records = upload_files(media_service, make_multipart, [('a.txt', b'1'), ('b.txt', b'2')])

        deleted = media_service.delete_many(f'{records[0].media_id},{records[1].media_id}')

        assert len(deleted) == 2
        assert MediaRepository.list_all() == []

    def test_delete_many_aborts_on_persistence_error(self, media_service, make_multipart, monkeypatch):
        records = upload_files(media_service, make_multipart, [('a.txt', b'1'), ('b.txt', b'2')])

        def failing_remove(storage_key):
            raise PersistenceError("permission denied")

        monkeypatch.setattr(media_service.store, 'remove', failing_remove)

        with pytest.raises(PersistenceError):
            media_service.delete_many([r.media_id for r in records])

        assert len(MediaRepository.list_all()) == 2


class TestExport:
    """Test bulk ZIP export."""

    def test_export_in_requested_order(self, media_service, make_multipart):
        records = upload_files(media_service, make_multipart, [('a.txt', b'alpha'), ('b.txt', b'beta'), ('c.txt', b'gamma')])

        ids = [records[2].media_id, records[0].media_id]
        data = b''.join(media_service.export_archive(ids))

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.testzip() is None
            assert archive.namelist() == ['c.txt', 'a.txt']
            assert archive.read('c.txt') == b'gamma'

    def test_export_skips_unknown_and_missing(self, media_service, make_multipart):
        records = upload_files(media_service, make_multipart, [('a.txt', b'alpha'), ('b.txt', b'beta')])
        media_service.store.remove(records[0].storage_key)

        data = b''.join(media_service.export_archive(['unknown', records[0].media_id, records[1].media_id]))

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ['b.txt']

    def test_export_duplicate_ids_once(self, media_service, make_multipart):
        [record] = upload_files(media_service, make_multipart, [('a.txt', b'alpha')])

        data = b''.join(media_service.export_archive([record.media_id, record.media_id]))

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ['a.txt']

    def test_export_aborts_on_decryption_error(self, media_service, make_multipart, content_dir):
        records = upload_files(media_service, make_multipart, [('a.txt', b'alpha'), ('b.txt', b'beta')])
        (content_dir / records[1].storage_key).write_bytes(b'truncated')

        with pytest.raises(DecryptionError):
            b''.join(media_service.export_archive([r.media_id for r in records]))


class TestListMedia:
    """Test gallery ordering."""

    @pytest.fixture
    def uploaded(self, media_service, make_multipart):
        return upload_files(media_service, make_multipart, [
            ('first.jpg', b'1'),
            ('second.gif', b'2'),
            ('third.mp4', b'3'),
            ('fourth.png', b'4'),
        ])

    def names(self, records):
        return [r.display_name for r in records]

    def test_desc_is_default(self, media_service, uploaded):
        assert self.names(media_service.list_media()) == ['fourth.png', 'third.mp4', 'second.gif', 'first.jpg']

    def test_asc(self, media_service, uploaded):
        assert self.names(media_service.list_media('asc')) == ['first.jpg', 'second.gif', 'third.mp4', 'fourth.png']

    def test_gif_first(self, media_service, uploaded):
        assert self.names(media_service.list_media('gif')) == ['second.gif', 'fourth.png', 'third.mp4', 'first.jpg']

    def test_video_first(self, media_service, uploaded):
        assert self.names(media_service.list_media('video')) == ['third.mp4', 'fourth.png', 'second.gif', 'first.jpg']

    def test_random_contains_everything(self, media_service, uploaded):
        assert sorted(self.names(media_service.list_media('random'))) == sorted(r.display_name for r in uploaded)

    def test_unknown_sort_falls_back_to_desc(self, media_service, uploaded):
        assert media_service.list_media('bogus') == media_service.list_media('desc')


class TestDatabaseErrors:
    """Test that metadata store failures surface as PersistenceError."""

    @pytest.fixture
    def locked_db(self):
        def _raise(*args, **kwargs):
            raise sqlite3.OperationalError("database is locked")
        return _raise

    def test_download_with_locked_database(self, media_service, monkeypatch, locked_db):
        monkeypatch.setattr(media_service.media_repo, 'get_by_id', locked_db)
        with pytest.raises(PersistenceError):
            media_service.download('any-id')

    def test_delete_with_locked_database(self, media_service, monkeypatch, locked_db):
        monkeypatch.setattr(media_service.media_repo, 'get_by_id', locked_db)
        with pytest.raises(PersistenceError):
            media_service.delete('any-id')

    def test_export_with_locked_database(self, media_service, monkeypatch, locked_db):
        monkeypatch.setattr(media_service.media_repo, 'find_by_ids', locked_db)
        with pytest.raises(PersistenceError):
            media_service.export_archive(['any-id'])

    @pytest.mark.parametrize('sort', ['asc', 'desc', 'gif'])
    def test_list_with_locked_database(self, media_service, monkeypatch, locked_db, sort):
        monkeypatch.setattr(media_service.media_repo, 'list_all', locked_db)
        with pytest.raises(PersistenceError):
            media_service.list_media(sort)
