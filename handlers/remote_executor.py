"""Remote executor facade: one SSH and one SFTP session per server."""
import logging
from typing import Any, Dict, List, Optional, Sequence

from core.config_loader import ConfigLoader
from core.models import ConnectionConfig
from handlers.command_executor import SecureCommandExecutor
from handlers.sftp_handler import SFTPHandler
from handlers.ssh_handler import SSHHandler
from utils.ssh_utils import resolve_credential


class RemoteExecutor:
    """
    Runs commands and transfers files on one configured server.

    The connection descriptor and credential are resolved when the executor is
    created; the SSH and SFTP sessions are opened on first use and closed by
    close() or when leaving a with block.
    """

    def __init__(self, server: str, config: Dict[str, Any], logger=None):
        """
        Args:
            server: Server name under "connections"
            config: Full application configuration
            logger: Optional logger for streamed output

        Raises:
            ServerNotConfigured, ConfigurationError, NoCredentialConfigured,
            CredentialUnreadable
        """
        self.server = server
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.connection: ConnectionConfig = ConfigLoader.get_connection(config, server)
        self.credential = resolve_credential(self.connection)

        self.ssh = SSHHandler(self.connection, self.credential, logger=self.logger)
        self.sftp = SFTPHandler(self.connection, self.credential, logger=self.logger)
        self.commands = SecureCommandExecutor(
            self.ssh,
            base_dir=self.connection.project_path,
            server=server,
            logger=self.logger,
        )

    def __enter__(self) -> 'RemoteExecutor':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close both sessions."""
        try:
            self.sftp.disconnect()
        finally:
            self.ssh.disconnect()

    def connect_both(self) -> None:
        """Establish SSH and SFTP sessions now, failing early if either cannot be opened."""
        self.ssh.connect()
        self.sftp.connect()

    def is_connected(self) -> bool:
        return self.ssh.connected or self.sftp.connected

    # Shell

    def run_and_get(self, command: Sequence[str]) -> str:
        """Run a single command, e.g. ['git', 'status'], and return its trimmed output."""
        return self.commands.run([command]).strip()

    def run_and_print(self, commands: Sequence[Sequence[str]]) -> str:
        """Run commands, streaming their output to the log, and return the combined output."""
        return self.commands.run(commands, on_output=self._print_output).strip()

    def run_raw_command(self, command: str, display: Optional[str] = None) -> str:
        """Run a trusted raw shell string in the project path."""
        return self.commands.run_raw(command, display=display)

    def is_remote_clean(self) -> bool:
        """True when the remote Git working tree has no staged or unstaged changes."""
        return self.run_and_get(['git', 'status', '--porcelain']) == ''

    def current_branch(self) -> str:
        return self.run_and_get(['git', 'rev-parse', '--abbrev-ref', 'HEAD'])

    def _print_output(self, output: str) -> None:
        for line in output.splitlines():
            if line.strip():
                self.logger.info(f"  {line}")

    # File transfer

    def upload_file(self, local_file: str, remote_file: str) -> None:
        self.sftp.upload(local_file, remote_file)

    def download_file(self, remote_file: str, local_file: str) -> None:
        self.sftp.download(remote_file, local_file)

    def list_files_recursively(self, remote_dir: str) -> List[str]:
        return self.sftp.list_files_recursively(remote_dir)

    def remote_file_size(self, remote_file: str) -> Optional[int]:
        return self.sftp.file_size(remote_file)

    def remote_exists(self, remote_path: str) -> bool:
        return self.sftp.exists(remote_path)
