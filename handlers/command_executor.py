"""Secure command execution on a remote shell."""
import logging
import shlex
from typing import Callable, List, Optional, Sequence

from core.exceptions import PathNotConfigured, RemoteCommandFailed


def render_command(command_parts: Sequence[str]) -> str:
    """
    Quote every argument individually for a POSIX shell.

    Args:
        command_parts: The command and its arguments, e.g. ['git', 'status']

    Returns:
        A command line in which each argument is a single literal word
    """
    if not command_parts:
        raise ValueError("Command must contain at least one argument")
    return ' '.join(shlex.quote(str(part)) for part in command_parts)


def render_directory(path: str) -> str:
    """Quote a working directory, keeping a leading ~ expandable as $HOME."""
    if path == '~':
        return '"$HOME"'
    if path.startswith('~/'):
        return '"$HOME"/' + shlex.quote(path[2:])
    return shlex.quote(path)


class SecureCommandExecutor:
    """Runs argument-vector commands under a base directory on a remote shell."""

    def __init__(self, transport, base_dir: Optional[str] = None,
                 server: str = '', logger=None):
        """
        Initialize the executor.

        Args:
            transport: Object with execute(command) -> CommandResult (an SSHHandler)
            base_dir: Default working directory for every command
            server: Server name used in error messages
            logger: Optional logger
        """
        self.transport = transport
        self.base_dir = base_dir
        self.server = server
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def _resolve_base_dir(self, base_dir: Optional[str]) -> str:
        directory = base_dir if base_dir is not None else self.base_dir
        if not directory:
            raise PathNotConfigured(f"Path is not defined for [{self.server}]")
        return directory

    def _execute(self, line: str, base_dir: str, shown: str) -> str:
        self.logger.debug(f"[{self.server}] {shown}")
        full_command = f"cd {render_directory(base_dir)} && {line}"
        result = self.transport.execute(full_command)

        if result.exit_code != 0:
            raise RemoteCommandFailed(self.server, shown, result.stderr, result.exit_code, result.stdout)

        return result.stdout

    def run(self, commands: Sequence[Sequence[str]], base_dir: Optional[str] = None,
            on_output: Optional[Callable[[str], None]] = None) -> str:
        """
        Run commands one after another, each given as an argument vector.

        Args:
            commands: e.g. [['git', 'fetch'], ['git', 'merge', 'origin/main']]
            base_dir: Working directory (defaults to the executor's base_dir)
            on_output: Called with each command's trimmed output as it completes

        Returns:
            Trimmed outputs, newline-joined in command order

        Raises:
            PathNotConfigured: If no working directory is known
            RemoteCommandFailed: On the first command exiting non-zero
        """
        directory = self._resolve_base_dir(base_dir)
        outputs: List[str] = []

        for command_parts in commands:
            safe_command = render_command(command_parts)
            output = self._execute(safe_command, directory, safe_command).strip()
            outputs.append(output)
            if on_output is not None:
                on_output(output)

        return '\n'.join(outputs)

    def run_raw(self, command: str, base_dir: Optional[str] = None,
                display: Optional[str] = None) -> str:
        """
        Run a trusted raw shell string (pipes, redirection, env assignment).

        Args:
            command: The raw command line
            base_dir: Working directory (defaults to the executor's base_dir)
            display: How the command appears in logs and errors (e.g. with secrets masked)

        Returns:
            The command's standard output

        Raises:
            PathNotConfigured: If no working directory is known
            RemoteCommandFailed: If the command exits non-zero
        """
        directory = self._resolve_base_dir(base_dir)
        return self._execute(command, directory, display or command)
