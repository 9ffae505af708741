"""validate: static checks of the configured connections, optionally with a live connection test."""
import os
from typing import Any, Dict, List, Tuple

from core.command_base import CommandBase
from core.config_loader import ConfigLoader
from core.exceptions import SyncOpsError


def validate_connection(name: str, raw: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """
    Statically validate one connection block.

    Args:
        name: Server name
        raw: The server's configuration dictionary

    Returns:
        (errors, warnings)
    """
    errors = []
    warnings = []

    ssh = raw.get('ssh')
    if not isinstance(ssh, dict):
        errors.append(f"Connection '{name}': missing 'ssh' configuration block.")
    else:
        if not ssh.get('host'):
            errors.append(f"Connection '{name}': 'ssh.host' is required.")
        if not ssh.get('username'):
            errors.append(f"Connection '{name}': 'ssh.username' is required.")

        key_path = ssh.get('key_path')
        if not ssh.get('password') and not key_path:
            warnings.append(f"Connection '{name}': neither 'ssh.password' nor 'ssh.key_path' is set.")

        if key_path and isinstance(key_path, str):
            key_path = os.path.expanduser(key_path)
            if not os.path.exists(key_path):
                warnings.append(f"Connection '{name}': SSH key file does not exist at '{key_path}'.")
            elif not os.access(key_path, os.R_OK):
                warnings.append(f"Connection '{name}': SSH key file is not readable at '{key_path}'.")

    project = raw.get('project')
    if not isinstance(project, dict):
        errors.append(f"Connection '{name}': missing 'project' configuration block.")
    else:
        if not project.get('path'):
            errors.append(f"Connection '{name}': 'project.path' is required.")
        for key in ('branch_main', 'branch_prod'):
            if project.get(key) == '':
                errors.append(f"Connection '{name}': 'project.{key}' is an empty string.")

    database = raw.get('database')
    if isinstance(database, dict) and any(value not in (None, '') for value in database.values()):
        for key in ('database', 'username', 'password'):
            if not database.get(key):
                warnings.append(
                    f"Connection '{name}': 'database.{key}' is not set but database sync relies on it."
                )

    permissions = raw.get('permissions')
    if isinstance(permissions, dict):
        web_folders = permissions.get('web_folders')
        if web_folders is not None and not isinstance(web_folders, (str, list)):
            warnings.append(f"Connection '{name}': 'permissions.web_folders' should be a string or array.")

    return errors, warnings


class ValidateCommand(CommandBase):
    """Validate connections (SSH, project paths) and optionally test connectivity."""

    def run(self) -> int:
        connections = ConfigLoader.connections(self.config)
        server_filter = self.option('server')
        with_connect = bool(self.option('connect', False))

        if not connections:
            self.logger.error('✘ No connections defined in the configuration.')
            return self.FAILURE

        if server_filter is not None and server_filter not in connections:
            self.logger.error(f"✘ No connection found for server key '{server_filter}'.")
            return self.FAILURE

        has_problems = False

        for name, raw in connections.items():
            if server_filter is not None and name != server_filter:
                continue

            self.logger.warning(f"Validating server '{name}'...")
            errors, warnings = validate_connection(name, raw if isinstance(raw, dict) else {})

            for message in errors:
                self.logger.error(f"  ✘ {message}")
            for message in warnings:
                self.logger.warning(f"  ⚠ {message}")

            if errors:
                has_problems = True
                continue

            self.logger.warning(f"  ✔ Static configuration looks valid for '{name}'.")

            if with_connect and not self._test_connection(name):
                has_problems = True

        if has_problems:
            self.logger.error('✘ Validation completed with problems. Please review the errors above.')
            return self.FAILURE

        self.logger.warning('✔ Configuration validation completed successfully. All checks passed.')
        return self.SUCCESS

    def _test_connection(self, name: str) -> bool:
        self.logger.info(f"  Testing SSH connectivity for '{name}'...")
        try:
            with self._create_executor(name) as executor:
                executor.connect_both()
        except SyncOpsError as e:
            self.logger.error(f"  ✘ SSH connectivity failed for '{name}': {e}")
            return False

        self.logger.warning(f"  ✔ SSH connectivity OK for '{name}'.")
        return True
