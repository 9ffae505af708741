"""Handler for the SFTP file-transfer session of a server."""
import logging
import os
import posixpath
from stat import S_ISDIR, S_ISREG
from typing import List, Optional

import paramiko

from core.exceptions import FileOperationError
from core.models import ConnectionConfig, Credential
from utils.ssh_utils import open_ssh_client


SKIPPED_DIRECTORIES = ('thumb', 'resized')
KEPT_DOTFILES = ('.gitignore',)


class SFTPHandler:
    """Lazily connected SFTP session for one server."""

    def __init__(self, config: ConnectionConfig, credential: Credential, logger=None):
        self.config = config
        self.credential = credential
        self.ssh_client: Optional[paramiko.SSHClient] = None
        self.sftp_client: Optional[paramiko.SFTPClient] = None
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def connected(self) -> bool:
        return self.sftp_client is not None

    def connect(self) -> paramiko.SFTPClient:
        """Open the SFTP session. Does nothing when already connected."""
        if self.sftp_client is None:
            self.logger.debug(f"Opening SFTP session to {self.config.host}:{self.config.port}...")
            self.ssh_client = open_ssh_client(self.config, self.credential)
            try:
                self.sftp_client = self.ssh_client.open_sftp()
            except paramiko.SSHException as e:
                self.ssh_client.close()
                self.ssh_client = None
                raise FileOperationError(f"[{self.config.name}] Unable to open SFTP session: {e}")
        return self.sftp_client

    def disconnect(self) -> None:
        """Close the SFTP session and its SSH connection."""
        if self.sftp_client:
            self.sftp_client.close()
            self.sftp_client = None
        if self.ssh_client:
            self.ssh_client.close()
            self.ssh_client = None

    def upload(self, local_file: str, remote_file: str) -> None:
        """Upload a local file to the server."""
        if not os.path.isfile(local_file) or not os.access(local_file, os.R_OK):
            raise FileOperationError(f"[{self.config.name}] Local file not found or unreadable: {local_file}")

        sftp = self.connect()
        try:
            sftp.put(local_file, remote_file)
        except (OSError, paramiko.SSHException) as e:
            raise FileOperationError(
                f"[{self.config.name}] Failed to upload file: {local_file} -> {remote_file}: {e}"
            )

    def download(self, remote_file: str, local_file: str) -> None:
        """Download a remote file to a local path."""
        sftp = self.connect()
        try:
            sftp.get(remote_file, local_file)
        except (OSError, paramiko.SSHException) as e:
            raise FileOperationError(f"[{self.config.name}] Failed to download file: {remote_file}: {e}")

    def file_size(self, remote_file: str) -> Optional[int]:
        """Return remote file size in bytes or None on failure."""
        sftp = self.connect()
        try:
            return int(sftp.stat(remote_file).st_size)
        except (OSError, TypeError):
            return None

    def exists(self, remote_path: str) -> bool:
        """Check remote file/directory existence."""
        sftp = self.connect()
        try:
            sftp.stat(remote_path)
            return True
        except OSError:
            return False

    def list_files_recursively(self, path: str) -> List[str]:
        """
        Recursively list files under path on the server.

        Skips anything under a thumb/ or resized/ directory and dotfiles other
        than .gitignore. Only regular files are returned.

        Args:
            path: Absolute or relative remote directory

        Returns:
            Remote file paths, prefixed the same way as path
        """
        sftp = self.connect()
        base = path.rstrip('/') or '/'
        files: List[str] = []
        self._list_files_recursive(sftp, base, '', files)
        return files

    def _list_files_recursive(self, sftp: paramiko.SFTPClient, base: str,
                              relative: str, files: List[str]) -> None:
        """Recursively collect regular files."""
        current = posixpath.join(base, relative) if relative else base

        try:
            entries = sftp.listdir_attr(current)
        except OSError as e:
            if not relative:
                # A missing root simply has no files
                return
            raise FileOperationError(f"[{self.config.name}] Error listing files in {current}: {e}")

        for item in entries:
            name = item.filename
            if name in ('.', '..'):
                continue

            item_relative = posixpath.join(relative, name) if relative else name
            mode = item.st_mode or 0

            if S_ISDIR(mode):
                if name.lower() in SKIPPED_DIRECTORIES:
                    continue
                self._list_files_recursive(sftp, base, item_relative, files)
                continue

            if name.startswith('.') and name not in KEPT_DOTFILES:
                continue

            if S_ISREG(mode):
                files.append(posixpath.join(base, item_relative))
