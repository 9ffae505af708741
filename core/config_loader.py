"""Configuration loader utilities."""
import json
import os
import re
from pathlib import Path
from typing import Dict, Any, Optional

from core.exceptions import ConfigurationError, ServerNotConfigured
from core.models import ConnectionConfig


DEFAULT_CONFIG_PATH = 'syncops.json'

# {{NAME}} or {{NAME|default}}
_PLACEHOLDER = re.compile(r'\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\|([^}]*))?\}\}')


class ConfigLoader:
    """Utility class for loading and managing configurations."""

    @staticmethod
    def default_path() -> str:
        """Config path from SYNCOPS_CONFIG, falling back to ./syncops.json."""
        return os.environ.get('SYNCOPS_CONFIG') or DEFAULT_CONFIG_PATH

    @staticmethod
    def load(config_path: str, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file
            environ: Environment used for {{NAME}} placeholders (default: os.environ)

        Returns:
            Dictionary containing the configuration

        Raises:
            ConfigurationError: If config file doesn't exist or JSON is invalid
        """
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(path, 'r') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration: {e}")

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration root must be an object: {config_path}")

        return ConfigLoader.replace_placeholders(config, environ)

    @staticmethod
    def replace_placeholders(config: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Recursively replace {{NAME}} and {{NAME|default}} with environment values.

        Args:
            config: Configuration dictionary
            environ: Mapping to read values from (default: os.environ)

        Returns:
            Configuration with placeholders replaced
        """
        env = os.environ if environ is None else environ

        def substitute(match):
            name, default = match.group(1), match.group(2)
            return env.get(name, default if default is not None else '')

        def replace_in_value(value):
            """Recursively replace placeholders in a value."""
            if isinstance(value, str):
                return _PLACEHOLDER.sub(substitute, value)
            elif isinstance(value, dict):
                return {k: replace_in_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [replace_in_value(item) for item in value]
            else:
                return value

        return replace_in_value(config)

    @staticmethod
    def connections(config: Dict[str, Any]) -> Dict[str, Any]:
        """Return the raw "connections" mapping (may be empty)."""
        connections = config.get('connections') or {}
        if not isinstance(connections, dict):
            raise ConfigurationError("'connections' must be an object keyed by server name")
        return connections

    @staticmethod
    def get_connection(config: Dict[str, Any], server: str) -> ConnectionConfig:
        """
        Resolve the connection descriptor for a named server.

        Raises:
            ServerNotConfigured: If the server has no configuration block
            ConfigurationError: If the block is incomplete
        """
        raw = ConfigLoader.connections(config).get(server)
        if not isinstance(raw, dict) or not raw:
            raise ServerNotConfigured(f"No config for server {server}")
        return ConnectionConfig.from_dict(server, raw)

