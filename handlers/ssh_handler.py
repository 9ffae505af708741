"""Handler for the SSH shell session of a server."""
import logging
from typing import Optional

import paramiko

from core.exceptions import RemoteConnectionError
from core.models import CommandResult, ConnectionConfig, Credential
from utils.ssh_exec import execute_ssh_command
from utils.ssh_utils import open_ssh_client


class SSHHandler:
    """Lazily connected SSH shell session for one server."""

    def __init__(self, config: ConnectionConfig, credential: Credential, logger=None):
        """
        Initialize SSH handler.

        Args:
            config: Connection descriptor of the server
            credential: Resolved password or private key
            logger: Optional logger
        """
        self.config = config
        self.credential = credential
        self.ssh_client: Optional[paramiko.SSHClient] = None
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def connected(self) -> bool:
        return self.ssh_client is not None

    def connect(self) -> paramiko.SSHClient:
        """
        Connect to the SSH server. Does nothing when already connected.

        Returns:
            The connected paramiko client
        """
        if self.ssh_client is None:
            self.logger.debug(f"Connecting to SSH server {self.config.host}:{self.config.port}...")
            self.ssh_client = open_ssh_client(self.config, self.credential)
        return self.ssh_client

    def disconnect(self) -> None:
        """Disconnect from the SSH server."""
        if self.ssh_client:
            self.ssh_client.close()
            self.ssh_client = None

    def execute(self, command: str) -> CommandResult:
        """
        Run one command line on the server.

        Raises:
            RemoteConnectionError: If the session breaks or the command times out
        """
        client = self.connect()
        self.logger.debug(f"[{self.config.name}] $ {command}")
        try:
            return execute_ssh_command(client, command, timeout=self.config.timeout)
        except (paramiko.SSHException, OSError) as e:
            raise RemoteConnectionError(f"SSH command did not complete on server {self.config.name}: {e}")
