"""Run a single command over an open SSH client and capture its output."""
import time
from typing import List, Optional

import paramiko

from core.models import CommandResult


CHUNK_SIZE = 32768
POLL_INTERVAL = 0.05


def execute_ssh_command(
    ssh_client: paramiko.SSHClient,
    command: str,
    timeout: Optional[float] = None
) -> CommandResult:
    """
    Run command on the remote side and collect stdout, stderr and the exit code.

    Both streams are drained as data arrives. The exit code is not checked
    here; callers decide whether a non-zero status is an error.

    Raises:
        TimeoutError: If no output arrives for `timeout` seconds before exit
    """
    stdin, stdout, stderr = ssh_client.exec_command(command, timeout=timeout)
    stdin.close()
    channel = stdout.channel

    out: List[bytes] = []
    err: List[bytes] = []
    last_activity = time.monotonic()

    while True:
        received = False
        while channel.recv_ready():
            out.append(channel.recv(CHUNK_SIZE))
            received = True
        while channel.recv_stderr_ready():
            err.append(channel.recv_stderr(CHUNK_SIZE))
            received = True

        if channel.exit_status_ready() and not channel.recv_ready() and not channel.recv_stderr_ready():
            break

        if received:
            last_activity = time.monotonic()
        elif timeout and time.monotonic() - last_activity > timeout:
            raise TimeoutError(f"No output for {timeout} seconds")
        else:
            time.sleep(POLL_INTERVAL)

    # Anything still in flight after the exit status
    out.append(stdout.read())
    err.append(stderr.read())
    status = channel.recv_exit_status()

    return CommandResult(
        stdout=b''.join(out).decode('utf-8', errors='replace'),
        exit_code=status,
        stderr=b''.join(err).decode('utf-8', errors='replace'),
    )
