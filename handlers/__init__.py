"""Handlers for remote sessions, local commands and storage disks."""
from .ssh_handler import SSHHandler
from .sftp_handler import SFTPHandler
from .remote_executor import RemoteExecutor
from .local_runner import LocalCommandRunner

__all__ = ['SSHHandler', 'SFTPHandler', 'RemoteExecutor', 'LocalCommandRunner']
