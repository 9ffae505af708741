"""Data model shared by the executors, the orchestrator and the commands."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import paramiko

from core.exceptions import ConfigurationError


DEFAULT_BRANCH_MAIN = 'main'


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one remote command."""

    stdout: str
    exit_code: int
    stderr: str = ''


@dataclass(frozen=True)
class Password:
    """Password credential."""

    value: str

    def __repr__(self) -> str:
        return 'Password(***)'


@dataclass(frozen=True)
class PrivateKey:
    """Private key credential, parsed once from key_path."""

    path: str
    pkey: paramiko.PKey

    def __repr__(self) -> str:
        return f'PrivateKey(path={self.path!r})'


Credential = Union[Password, PrivateKey]


def normalize_folders(value: Any) -> Tuple[str, ...]:
    """
    Normalize a folder list given as a comma-separated string or a list.

    Args:
        value: "storage, themes" or ["storage", "themes"]

    Returns:
        Tuple of trimmed, non-empty folder names
    """
    if not value:
        return ()
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(
            f"Folder list must be a string or a list, got {type(value).__name__}"
        )
    return tuple(str(item).strip() for item in items if str(item).strip())


def _argv(value: Any, key: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = value.split()
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigurationError(f"'project.commands.{key}' must be a non-empty list of arguments")
    return tuple(str(part) for part in value)


@dataclass(frozen=True)
class Permissions:
    """Optional ownership policy for a server."""

    root_user: Optional[str] = None
    web_user: Optional[str] = None
    web_folders: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'Permissions':
        raw = raw or {}
        return cls(
            root_user=raw.get('root_user') or None,
            web_user=raw.get('web_user') or None,
            web_folders=normalize_folders(raw.get('web_folders')),
        )


@dataclass(frozen=True)
class DatabaseConfig:
    """Database credentials used by the database sync commands."""

    database: str
    username: str
    password: str = ''
    tables: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional['DatabaseConfig']:
        if not raw or not raw.get('database'):
            return None
        return cls(
            database=str(raw['database']),
            username=str(raw.get('username') or ''),
            password=str(raw.get('password') or ''),
            tables=normalize_folders(raw.get('tables')),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            'database': self.database,
            'username': self.username,
            'password': self.password,
            'tables': list(self.tables),
        }


@dataclass(frozen=True)
class ProjectCommands:
    """Framework commands run during deployment, as argument vectors."""

    maintenance_down: Tuple[str, ...] = ('php', 'artisan', 'down')
    maintenance_up: Tuple[str, ...] = ('php', 'artisan', 'up')
    cache_clear: Tuple[Tuple[str, ...], ...] = (
        ('php', 'artisan', 'route:clear'),
        ('php', 'artisan', 'config:clear'),
        ('php', 'artisan', 'cache:clear'),
    )
    composer_install: Tuple[str, ...] = ('composer', 'install', '--no-dev')
    migrate: Tuple[str, ...] = ('php', 'artisan', 'winter:up')

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'ProjectCommands':
        if not raw:
            return cls()
        overrides = {}
        for key in ('maintenance_down', 'maintenance_up', 'composer_install', 'migrate'):
            if key in raw:
                overrides[key] = _argv(raw[key], key)
        if 'cache_clear' in raw:
            overrides['cache_clear'] = tuple(_argv(item, 'cache_clear') for item in raw['cache_clear'])
        return cls(**overrides)


@dataclass(frozen=True)
class ConnectionConfig:
    """Immutable connection descriptor for one named server."""

    name: str
    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    key_path: Optional[str] = None
    passphrase: Optional[str] = None
    timeout: Optional[float] = None
    project_path: str = ''
    branch_main: Union[str, bool] = DEFAULT_BRANCH_MAIN
    branch_prod: Optional[str] = None
    permissions: Permissions = field(default_factory=Permissions)
    database: Optional[DatabaseConfig] = None
    commands: ProjectCommands = field(default_factory=ProjectCommands)

    @property
    def pull_only(self) -> bool:
        """True when branch_main is explicitly false (no fetch/merge)."""
        return self.branch_main is False

    @classmethod
    def from_dict(cls, name: str, raw: Dict[str, Any]) -> 'ConnectionConfig':
        """
        Build a connection from its configuration block.

        Args:
            name: Server name (key under "connections")
            raw: The server's configuration dictionary

        Returns:
            ConnectionConfig

        Raises:
            ConfigurationError: If the ssh block is missing or incomplete
        """
        ssh = raw.get('ssh')
        if not isinstance(ssh, dict):
            raise ConfigurationError(f"Missing SSH config for server {name}")

        host = ssh.get('host')
        username = ssh.get('username')
        if not host or not username:
            raise ConfigurationError(f"Incomplete SSH config for server {name}")

        try:
            port = int(ssh.get('port') or 22)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid SSH port for server {name}: {ssh.get('port')!r}")

        timeout = ssh.get('timeout')
        try:
            timeout = float(timeout) if timeout else None
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid SSH timeout for server {name}: {ssh.get('timeout')!r}")

        project = raw.get('project') or {}

        branch_main = project.get('branch_main', DEFAULT_BRANCH_MAIN)
        if branch_main is None:
            branch_main = DEFAULT_BRANCH_MAIN
        elif isinstance(branch_main, str) and branch_main.strip().lower() == 'false':
            # Placeholders from the environment arrive as strings
            branch_main = False

        return cls(
            name=name,
            host=str(host),
            username=str(username),
            port=port,
            password=ssh.get('password') or None,
            key_path=ssh.get('key_path') or None,
            passphrase=ssh.get('passphrase') or None,
            timeout=timeout,
            project_path=str(project.get('path') or '').rstrip('/') or str(project.get('path') or ''),
            branch_main=branch_main,
            branch_prod=project.get('branch_prod') or None,
            permissions=Permissions.from_dict(raw.get('permissions')),
            database=DatabaseConfig.from_dict(raw.get('database')),
            commands=ProjectCommands.from_dict(project.get('commands')),
        )


@dataclass
class DeploymentOutcome:
    """Result threaded through the deployment state machine."""

    success: bool = False
    conflicted: bool = False
    remote_dirty: bool = False
    state: str = 'idle'
    message: str = ''
    states: List[str] = field(default_factory=list)
