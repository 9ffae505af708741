"""Custom exception hierarchy for syncops."""
from typing import Optional


class SyncOpsError(Exception):
    """Base exception for all syncops errors."""
    pass


class ConfigurationError(SyncOpsError):
    """Raised when configuration is invalid."""
    pass


class ServerNotConfigured(ConfigurationError):
    """Raised when a named server has no connection configuration."""
    pass


class NoCredentialConfigured(ConfigurationError):
    """Raised when neither an SSH key nor a password is configured."""
    pass


class CredentialUnreadable(ConfigurationError):
    """Raised when the configured SSH key cannot be read or parsed."""
    pass


class PathNotConfigured(ConfigurationError):
    """Raised when a remote command is run without a project path."""
    pass


class RemoteConnectionError(SyncOpsError):
    """Raised when connection to a remote server fails."""
    pass


class RemoteCommandFailed(SyncOpsError):
    """Raised when a remote command exits with a non-zero status."""

    def __init__(self, server: str, command: str, stderr: str = '', exit_code: Optional[int] = None,
                 stdout: str = ''):
        self.server = server
        self.command = command
        self.stderr = stderr
        self.stdout = stdout
        self.exit_code = exit_code
        super().__init__(
            f"Remote command failed on [{server}] (exit {exit_code}):\n"
            f"Command: {command}\n"
            f"Error: {stderr.strip()}"
        )


class LocalCommandFailed(SyncOpsError):
    """Raised when a local command exits with a non-zero status."""

    def __init__(self, command: str, stderr: str = '', stdout: str = '', exit_code: Optional[int] = None):
        self.command = command
        self.stderr = stderr
        self.stdout = stdout
        self.exit_code = exit_code
        super().__init__(
            f"Local command failed (exit {exit_code}): {command}\n"
            f"STDERR: {stderr.strip()}"
        )


class LocalCommandTimeout(LocalCommandFailed):
    """Raised when a local command exceeds its timeout."""
    pass


class FileOperationError(SyncOpsError):
    """Raised when file operations fail."""
    pass


class StorageError(SyncOpsError):
    """Raised when a storage disk is missing or a blob operation fails."""
    pass
