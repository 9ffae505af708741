"""Tests for storage disks."""
import io
from unittest.mock import patch, MagicMock

import pytest
from botocore.exceptions import ClientError

from core.exceptions import StorageError
from handlers.storage_handler import LocalStorage, S3Storage, StorageBackend, create_storage


def client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': 'error'}}, 'HeadObject')


class TestStorageBackend:
    """Test the disk interface."""

    def test_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            StorageBackend()

    def test_subclass_must_implement_every_operation(self):
        class PartialStorage(StorageBackend):
            def put(self, path, content):
                pass

        with pytest.raises(TypeError):
            PartialStorage()


class TestLocalStorage:
    """Test the directory-backed disk."""

    def test_put_get_size(self, tmp_path):
        storage = LocalStorage(str(tmp_path))

        storage.put('backup/a.sql.gz', b'dump')

        assert storage.get('backup/a.sql.gz') == b'dump'
        assert storage.exists('backup/a.sql.gz')
        assert storage.size('backup/a.sql.gz') == 4
        assert storage.size('backup/missing') is None

    def test_put_stream(self, tmp_path):
        storage = LocalStorage(str(tmp_path))

        storage.put('a.bin', io.BytesIO(b'streamed'))

        assert (tmp_path / 'a.bin').read_bytes() == b'streamed'

    def test_put_file(self, tmp_path):
        source = tmp_path / 'source.tar.gz'
        source.write_bytes(b'archive')
        storage = LocalStorage(str(tmp_path / 'disk'))

        storage.put_file('backup/source.tar.gz', str(source))

        assert storage.get('backup/source.tar.gz') == b'archive'

    def test_all_files(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        storage.put('storage/media/a.jpg', b'a')
        storage.put('storage/b.txt', b'b')
        storage.put('other/c.txt', b'c')

        assert storage.all_files('storage') == ['storage/b.txt', 'storage/media/a.jpg']
        assert storage.all_files('nothing-here') == []

    def test_path_traversal_rejected(self, tmp_path):
        storage = LocalStorage(str(tmp_path / 'disk'))

        with pytest.raises(StorageError, match='path traversal'):
            storage.put('../escape.txt', b'x')


class TestS3Storage:
    """Test the S3-backed disk with a mocked client."""

    def test_put_bytes_with_prefix(self):
        client = MagicMock()
        storage = S3Storage('bucket', prefix='/site/', client=client)

        storage.put('storage/a.jpg', b'data')

        client.put_object.assert_called_once_with(Bucket='bucket', Key='site/storage/a.jpg', Body=b'data')

    def test_put_stream_uses_upload_fileobj(self):
        client = MagicMock()
        storage = S3Storage('bucket', client=client)
        stream = io.BytesIO(b'data')

        storage.put('a.jpg', stream)

        client.upload_fileobj.assert_called_once_with(stream, 'bucket', 'a.jpg')

    def test_size_and_missing_object(self):
        client = MagicMock()
        client.head_object.side_effect = [{'ContentLength': 12}, client_error('404')]
        storage = S3Storage('bucket', client=client)

        assert storage.size('a.jpg') == 12
        assert storage.size('b.jpg') is None

    def test_head_other_error_raises(self):
        client = MagicMock()
        client.head_object.side_effect = client_error('403')
        storage = S3Storage('bucket', client=client)

        with pytest.raises(StorageError, match='Failed to stat'):
            storage.exists('a.jpg')

    def test_all_files_strips_prefix(self):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {'Contents': [{'Key': 'site/storage/a.jpg'}, {'Key': 'site/storage/b.jpg'}]},
            {},
        ]
        client.get_paginator.return_value = paginator
        storage = S3Storage('bucket', prefix='site', client=client)

        assert storage.all_files('storage') == ['storage/a.jpg', 'storage/b.jpg']
        paginator.paginate.assert_called_once_with(Bucket='bucket', Prefix='site/storage')

    def test_upload_failure_is_wrapped(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError({'Error': {'Code': '500'}}, 'PutObject')
        storage = S3Storage('bucket', client=client)

        with pytest.raises(StorageError, match='Failed to upload s3://bucket/a.jpg'):
            storage.put('a.jpg', b'x')


class TestCreateStorage:
    """Test disk resolution from configuration."""

    def test_local_disk(self, tmp_path):
        config = {'storage': {'disks': {'backups': {'driver': 'local', 'root': str(tmp_path)}}}}

        storage = create_storage('backups', config)

        assert isinstance(storage, LocalStorage)

    @patch('handlers.storage_handler.boto3.Session')
    def test_s3_disk(self, mock_session):
        config = {'storage': {'disks': {'s3': {
            'driver': 's3', 'bucket': 'b', 'prefix': 'p', 'region': 'eu-central-1', 'profile': 'ops',
        }}}}

        storage = create_storage('s3', config)

        assert isinstance(storage, S3Storage)
        mock_session.assert_called_once_with(profile_name='ops', region_name='eu-central-1')
        mock_session.return_value.client.assert_called_once_with('s3', endpoint_url=None)

    def test_unknown_disk(self):
        with pytest.raises(StorageError, match="The storage disk 'nope' is not configured."):
            create_storage('nope', {})

    def test_unknown_driver(self):
        with pytest.raises(StorageError, match='Unsupported storage driver'):
            create_storage('ftp', {'storage': {'disks': {'ftp': {'driver': 'ftp'}}}})
