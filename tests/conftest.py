"""Shared fixtures: configuration dictionaries and fake remote transports."""
import copy
from typing import Callable, Dict, List, Optional

import pytest

from core.exceptions import RemoteCommandFailed
from core.models import CommandResult, ConnectionConfig


SAMPLE_CONFIG = {
    'options': {'verbose': True},
    'local': {
        'path': '.',
        'storage_path': 'storage/app',
        'database': {'database': 'local_db', 'username': 'root', 'password': 'secret'},
    },
    'storage': {
        'disks': {
            'backups': {'driver': 'local', 'root': '/tmp/syncops-backups'},
        }
    },
    'connections': {
        'production': {
            'ssh': {'host': 'example.com', 'port': 22, 'username': 'deploy', 'password': 'hunter2'},
            'project': {'path': '/var/www/site', 'branch_main': 'main', 'branch_prod': 'prod'},
            'permissions': {'root_user': None, 'web_user': 'www-data', 'web_folders': 'storage, themes'},
            'database': {'database': 'site', 'username': 'site', 'password': "p'w", 'tables': []},
        },
        'staging': {
            'ssh': {'host': 'staging.example.com', 'username': 'deploy'},
            'project': {'path': '/var/www/staging', 'branch_main': False},
        },
    },
}


@pytest.fixture
def sample_config():
    return copy.deepcopy(SAMPLE_CONFIG)


class FakeTransport:
    """Stands in for SSHHandler: records command lines and replies from a script."""

    def __init__(self, replies: Optional[Dict[str, CommandResult]] = None):
        self.replies = replies or {}
        self.commands: List[str] = []

    def execute(self, command: str) -> CommandResult:
        self.commands.append(command)
        for needle, result in self.replies.items():
            if needle in command:
                return result
        return CommandResult(stdout='', exit_code=0)


class FakeExecutor:
    """
    Stands in for RemoteExecutor in orchestrator and command tests.

    Every run_and_print call records its argument vectors; `responder` maps an
    argument vector to its output or raises.
    """

    def __init__(self, connection: ConnectionConfig, clean: bool = True,
                 responder: Optional[Callable[[List[str]], str]] = None):
        self.connection = connection
        self.clean = clean
        self.responder = responder or (lambda argv: '')
        self.commands: List[List[str]] = []
        self.closed = False
        self.branch = 'prod'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def is_remote_clean(self) -> bool:
        return self.clean

    def current_branch(self) -> str:
        return self.branch

    def run_and_get(self, command) -> str:
        self.commands.append(list(command))
        return self.responder(list(command)).strip()

    def run_and_print(self, commands) -> str:
        outputs = []
        for command in commands:
            self.commands.append(list(command))
            outputs.append(self.responder(list(command)))
        return '\n'.join(outputs).strip()

    def is_connected(self) -> bool:
        return True


def make_connection(**overrides) -> ConnectionConfig:
    raw = {
        'ssh': {'host': 'example.com', 'username': 'deploy', 'password': 'x'},
        'project': {'path': '/var/www/site', 'branch_main': 'main', 'branch_prod': 'prod'},
    }
    permissions = overrides.pop('permissions', None)
    if permissions is not None:
        raw['permissions'] = permissions
    raw['project'].update(overrides)
    return ConnectionConfig.from_dict('production', raw)


def conflict_failure(command: str = 'git merge origin/main') -> RemoteCommandFailed:
    return RemoteCommandFailed(
        'production', command, stderr='Automatic merge failed; fix conflicts and then commit the result.',
        exit_code=1, stdout='CONFLICT (content): Merge conflict in config/app.php',
    )
