"""Tests for SFTP listing and transfers."""
import stat
from unittest.mock import MagicMock

import pytest

from conftest import make_connection
from core.exceptions import FileOperationError
from core.models import Password
from handlers.sftp_handler import SFTPHandler


def entry(name, directory=False):
    item = MagicMock()
    item.filename = name
    item.st_mode = (stat.S_IFDIR if directory else stat.S_IFREG) | 0o755
    return item


@pytest.fixture
def handler():
    sftp = SFTPHandler(make_connection(), Password('x'))
    sftp.sftp_client = MagicMock()
    return sftp


class TestListFilesRecursively:
    """Test the recursive remote listing and its filters."""

    def test_filters_thumbnails_and_dotfiles(self, handler):
        tree = {
            '/srv/storage/app': [
                entry('.'), entry('..'),
                entry('media', directory=True),
                entry('thumb', directory=True),
                entry('.gitignore'),
                entry('.DS_Store'),
            ],
            '/srv/storage/app/media': [
                entry('a.jpg'),
                entry('Resized', directory=True),
                entry('docs', directory=True),
            ],
            '/srv/storage/app/media/docs': [entry('b.pdf')],
        }
        handler.sftp_client.listdir_attr.side_effect = lambda path: tree[path]

        files = handler.list_files_recursively('/srv/storage/app/')

        assert files == [
            '/srv/storage/app/media/a.jpg',
            '/srv/storage/app/media/docs/b.pdf',
            '/srv/storage/app/.gitignore',
        ]
        visited = [c.args[0] for c in handler.sftp_client.listdir_attr.call_args_list]
        assert '/srv/storage/app/thumb' not in visited
        assert '/srv/storage/app/media/Resized' not in visited

    def test_missing_root_has_no_files(self, handler):
        handler.sftp_client.listdir_attr.side_effect = IOError('No such file')

        assert handler.list_files_recursively('/srv/storage/app') == []

    def test_unreadable_subdirectory_raises(self, handler):
        def listdir(path):
            if path == '/srv':
                return [entry('locked', directory=True)]
            raise IOError('Permission denied')

        handler.sftp_client.listdir_attr.side_effect = listdir

        with pytest.raises(FileOperationError, match='Error listing files in /srv/locked'):
            handler.list_files_recursively('/srv')


class TestTransfers:
    """Test uploads, downloads and stat helpers."""

    def test_upload_requires_local_file(self, handler, tmp_path):
        with pytest.raises(FileOperationError, match='Local file not found'):
            handler.upload(str(tmp_path / 'missing.txt'), '/srv/missing.txt')
        handler.sftp_client.put.assert_not_called()

    def test_upload(self, handler, tmp_path):
        local = tmp_path / 'a.txt'
        local.write_text('hello')

        handler.upload(str(local), '/srv/a.txt')

        handler.sftp_client.put.assert_called_once_with(str(local), '/srv/a.txt')

    def test_download_failure_is_wrapped(self, handler, tmp_path):
        handler.sftp_client.get.side_effect = IOError('gone')

        with pytest.raises(FileOperationError, match='Failed to download file'):
            handler.download('/srv/a.txt', str(tmp_path / 'a.txt'))

    def test_file_size(self, handler):
        handler.sftp_client.stat.return_value = MagicMock(st_size=42)

        assert handler.file_size('/srv/a.txt') == 42

    def test_file_size_of_missing_file(self, handler):
        handler.sftp_client.stat.side_effect = IOError('missing')

        assert handler.file_size('/srv/a.txt') is None

    def test_exists(self, handler):
        handler.sftp_client.stat.side_effect = [MagicMock(), IOError('missing')]

        assert handler.exists('/srv/a.txt') is True
        assert handler.exists('/srv/b.txt') is False

    def test_disconnect_closes_clients(self, handler):
        sftp_client = handler.sftp_client
        ssh_client = MagicMock()
        handler.ssh_client = ssh_client

        handler.disconnect()

        sftp_client.close.assert_called_once()
        ssh_client.close.assert_called_once()
        assert not handler.connected
