"""Tests for path helpers, git output predicates and mysql command builders."""
import pytest

from core.exceptions import LocalCommandFailed
from handlers.local_runner import LocalCommandRunner
from utils.git_output import looks_like_merge_conflict, touched_dependency_manifest
from utils.mysql_commands import dump_command, import_command, mask_password, probe_command
from utils.path_utils import format_path, is_hidden_or_thumbnail, join_remote_path, relative_to


DB = {'database': 'site', 'username': 'deploy', 'password': "p'w"}


class TestPathUtils:
    """Test path helpers."""

    @pytest.mark.parametrize('value, expected', [
        ('backup', 'backup/'),
        ('backup///', 'backup/'),
        ('', None),
        (None, None),
    ])
    def test_format_path(self, value, expected):
        assert format_path(value) == expected

    def test_join_remote_path(self):
        assert join_remote_path('/var/www/site/', 'storage/app') == '/var/www/site/storage/app'
        assert join_remote_path('C:\\site', 'storage') == 'C:/site/storage'

    def test_relative_to(self):
        assert relative_to('/srv/storage/app/media/a.jpg', '/srv/storage/app/') == 'media/a.jpg'
        assert relative_to('/elsewhere/a.jpg', '/srv') == 'elsewhere/a.jpg'

    @pytest.mark.parametrize('path, hidden', [
        ('media/a.jpg', False),
        ('.gitignore', True),
        ('media/.DS_Store', True),
        ('media/thumb/a.jpg', True),
        ('media/Thumb/a.jpg', True),
        ('media/thumbnail.jpg', False),
    ])
    def test_is_hidden_or_thumbnail(self, path, hidden):
        assert is_hidden_or_thumbnail(path) is hidden


class TestGitOutput:
    """Test predicates over git output."""

    def test_conflict(self):
        assert looks_like_merge_conflict('CONFLICT (content): Merge conflict in a.php')
        assert not looks_like_merge_conflict('Fast-forward')
        assert not looks_like_merge_conflict(None)

    def test_manifest(self):
        assert touched_dependency_manifest(' composer.lock | 4 ++--')
        assert not touched_dependency_manifest('composer.json | 1 +')


class TestMysqlCommands:
    """Test shell command builders."""

    def test_dump_gzip(self):
        command = dump_command(DB, '/tmp/dump.sql.gz')

        assert command == (
            "MYSQL_PWD='p'\"'\"'w' bash -o pipefail -c "
            "'mysqldump --skip-comments --replace -udeploy site | gzip > /tmp/dump.sql.gz'"
        )

    def test_failed_gzip_dump_exits_non_zero(self, tmp_path):
        command = dump_command(DB, 'out.sql.gz', client='false')

        with pytest.raises(LocalCommandFailed):
            LocalCommandRunner(str(tmp_path)).run(command)

    def test_dump_plain_with_tables(self):
        command = dump_command(DB, '/tmp/dump.sql', gzip=False, tables=['users', 'system files'])

        assert command.endswith("site users 'system files' > /tmp/dump.sql")
        assert 'gzip' not in command

    def test_dump_without_password(self):
        command = dump_command({'database': 'site', 'username': 'root'}, 'out.sql', gzip=False)

        assert command == 'mysqldump --skip-comments --replace -uroot site > out.sql'

    def test_import_gzip(self):
        assert import_command(DB, 'C:\\dumps\\a.sql.gz') == (
            "gunzip -c C:/dumps/a.sql.gz | MYSQL_PWD='p'\"'\"'w' mysql -udeploy site"
        )

    def test_import_plain(self):
        assert import_command({'database': 'site', 'username': 'root'}, '/tmp/a.sql') == (
            'mysql -uroot site < /tmp/a.sql'
        )

    def test_mask_password(self):
        masked = mask_password(dump_command(DB, 'out.sql'), DB)

        assert masked.startswith('MYSQL_PWD=*** bash -o pipefail -c ')
        assert "p'" not in masked

    def test_probe(self):
        command = probe_command({'database': 'site', 'username': 'deploy'}, client='mariadb')

        assert command == "mariadb -udeploy -e 'SELECT 1' site"
