"""Local command runner."""
import logging
import os
import subprocess
from typing import Optional, Sequence, Union

from core.exceptions import LocalCommandFailed, LocalCommandTimeout


DEFAULT_TIMEOUT = 60

Command = Union[str, Sequence[str]]


class LocalCommandRunner:
    """Runs commands on the local machine inside the project directory."""

    def __init__(self, base_path: Optional[str] = None, timeout: int = DEFAULT_TIMEOUT, logger=None):
        """
        Args:
            base_path: Working directory for every command (default: current directory)
            timeout: Default timeout in seconds
            logger: Optional logger
        """
        self.base_path = base_path or os.getcwd()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def run(self, command: Command, timeout: Optional[int] = None) -> str:
        """
        Run a command and return its standard output.

        A string runs through the shell; a list runs as an argument vector.

        Args:
            command: 'tar -pczf backup.tar.gz .' or ['git', 'push']
            timeout: Timeout in seconds (default: the runner's timeout)

        Returns:
            Captured standard output

        Raises:
            LocalCommandFailed: If the command exits non-zero or cannot start
            LocalCommandTimeout: If the command exceeds its timeout
        """
        shell = isinstance(command, str)
        shown = command if shell else ' '.join(command)
        limit = timeout if timeout is not None else self.timeout

        self.logger.debug(f"Running locally: {shown}")

        try:
            # Pass current environment to ensure PATH is available
            result = subprocess.run(
                command if shell else list(command),
                shell=shell,
                cwd=self.base_path,
                capture_output=True,
                text=True,
                timeout=limit,
                env=os.environ.copy()
            )
        except subprocess.TimeoutExpired as e:
            raise LocalCommandTimeout(
                shown, f"Command timed out after {limit} seconds", _text(e.stdout), None
            )
        except OSError as e:
            raise LocalCommandFailed(shown, str(e), '', None)

        if result.returncode != 0:
            raise LocalCommandFailed(shown, result.stderr, result.stdout, result.returncode)

        return result.stdout


def _text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value
