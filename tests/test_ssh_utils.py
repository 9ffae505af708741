"""Tests for credential resolution and SSH client setup."""
from unittest.mock import patch, MagicMock

import paramiko
import pytest

from conftest import make_connection
from core.exceptions import CredentialUnreadable, NoCredentialConfigured, RemoteConnectionError
from core.models import ConnectionConfig, Password, PrivateKey
from utils.ssh_exec import execute_ssh_command
from utils.ssh_utils import load_ssh_private_key, open_ssh_client, resolve_credential


def connection_with(**ssh) -> ConnectionConfig:
    raw = {'ssh': {'host': 'example.com', 'username': 'deploy', **ssh}, 'project': {'path': '/srv'}}
    return ConnectionConfig.from_dict('production', raw)


@pytest.fixture
def rsa_key_file(tmp_path):
    key = paramiko.RSAKey.generate(2048)
    path = tmp_path / 'id_rsa'
    key.write_private_key_file(str(path))
    return path, key


class TestResolveCredential:
    """Test credential selection."""

    @patch('utils.ssh_utils.paramiko.SSHClient')
    def test_no_credential_raises_before_network(self, mock_client):
        with pytest.raises(NoCredentialConfigured, match='production'):
            resolve_credential(connection_with())

        mock_client.assert_not_called()

    def test_password_only(self):
        credential = resolve_credential(connection_with(password='hunter2'))

        assert isinstance(credential, Password)
        assert credential.value == 'hunter2'
        assert 'hunter2' not in repr(credential)

    def test_key_wins_over_password(self, rsa_key_file):
        path, key = rsa_key_file

        credential = resolve_credential(connection_with(password='hunter2', key_path=str(path)))

        assert isinstance(credential, PrivateKey)
        assert credential.path == str(path)
        assert credential.pkey.get_fingerprint() == key.get_fingerprint()

    def test_missing_key_file(self, tmp_path):
        with pytest.raises(CredentialUnreadable):
            resolve_credential(connection_with(key_path=str(tmp_path / 'missing')))

    def test_garbage_key_file(self, tmp_path):
        path = tmp_path / 'id_broken'
        path.write_text('this is not a key\n')

        with pytest.raises(CredentialUnreadable, match='Failed to load private key'):
            resolve_credential(connection_with(key_path=str(path)))

    def test_empty_key_path_falls_back_to_password(self):
        credential = resolve_credential(connection_with(key_path='', password='hunter2'))

        assert isinstance(credential, Password)


class TestLoadPrivateKey:
    """Test key parsing."""

    def test_rsa_key_material(self, rsa_key_file):
        path, key = rsa_key_file

        loaded = load_ssh_private_key(path.read_text())

        assert isinstance(loaded, paramiko.RSAKey)
        assert loaded.get_fingerprint() == key.get_fingerprint()


class TestOpenSSHClient:
    """Test client connection arguments."""

    @patch('utils.ssh_utils.paramiko.SSHClient')
    def test_password_login(self, mock_client_class):
        client = MagicMock()
        mock_client_class.return_value = client
        config = make_connection()

        result = open_ssh_client(config, Password('x'))

        assert result is client
        kwargs = client.connect.call_args.kwargs
        assert kwargs['hostname'] == 'example.com'
        assert kwargs['port'] == 22
        assert kwargs['username'] == 'deploy'
        assert kwargs['password'] == 'x'
        assert 'pkey' not in kwargs
        assert kwargs['look_for_keys'] is False

    @patch('utils.ssh_utils.paramiko.SSHClient')
    def test_key_login(self, mock_client_class):
        client = MagicMock()
        mock_client_class.return_value = client
        pkey = MagicMock(spec=paramiko.PKey)

        open_ssh_client(make_connection(), PrivateKey(path='~/.ssh/id', pkey=pkey))

        kwargs = client.connect.call_args.kwargs
        assert kwargs['pkey'] is pkey
        assert 'password' not in kwargs

    @patch('utils.ssh_utils.paramiko.SSHClient')
    def test_login_failure_is_wrapped(self, mock_client_class):
        client = MagicMock()
        client.connect.side_effect = paramiko.AuthenticationException('bad password')
        mock_client_class.return_value = client

        with pytest.raises(RemoteConnectionError, match='SSH login failed for server production'):
            open_ssh_client(make_connection(), Password('x'))
        client.close.assert_called_once()


class FakeChannel:
    """Channel that only reports an exit status once stderr has been read."""

    def __init__(self, out_chunks, err_chunks, exit_code=0):
        self.out_chunks = list(out_chunks)
        self.err_chunks = list(err_chunks)
        self.exit_code = exit_code

    def recv_ready(self):
        return bool(self.out_chunks)

    def recv(self, size):
        return self.out_chunks.pop(0)

    def recv_stderr_ready(self):
        return bool(self.err_chunks)

    def recv_stderr(self, size):
        return self.err_chunks.pop(0)

    def exit_status_ready(self):
        return not self.err_chunks

    def recv_exit_status(self):
        return self.exit_code


def ssh_client_with(channel):
    stdout = MagicMock()
    stdout.channel = channel
    stdout.read.return_value = b''
    stderr = MagicMock()
    stderr.read.return_value = b''
    client = MagicMock()
    client.exec_command.return_value = (MagicMock(), stdout, stderr)
    return client


class TestExecuteSshCommand:
    """Test capturing remote command output."""

    def test_collects_both_streams(self):
        client = ssh_client_with(FakeChannel([b'hello ', b'world\n'], [b'warn\n'], exit_code=0))

        result = execute_ssh_command(client, 'echo hello world', timeout=5)

        assert result.stdout == 'hello world\n'
        assert result.stderr == 'warn\n'
        assert result.exit_code == 0
        client.exec_command.assert_called_once_with('echo hello world', timeout=5)

    def test_heavy_stderr_is_drained_before_exit(self):
        chunks = [b'e' * 32768 for _ in range(10)]
        client = ssh_client_with(FakeChannel([b'ok\n'], chunks, exit_code=2))

        result = execute_ssh_command(client, 'noisy')

        assert len(result.stderr) == 32768 * 10
        assert result.stdout == 'ok\n'
        assert result.exit_code == 2

    def test_silent_command_times_out(self):
        channel = FakeChannel([], [])
        channel.exit_status_ready = lambda: False
        client = ssh_client_with(channel)

        with pytest.raises(TimeoutError):
            execute_ssh_command(client, 'sleep 100', timeout=0.01)
