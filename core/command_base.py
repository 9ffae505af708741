"""Base class for all syncops commands."""
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from core.config_loader import ConfigLoader
from core.exceptions import ConfigurationError


class CleanOutputFormatter(logging.Formatter):
    """Custom formatter that hides the level name for WARNING messages."""

    def format(self, record):
        # For WARNING level, use a format without levelname
        if record.levelno == logging.WARNING:
            original_format = self._style._fmt
            self._style._fmt = '%(asctime)s - %(name)s - %(message)s'
            result = super().format(record)
            self._style._fmt = original_format
            return result
        else:
            return super().format(record)


class CommandBase(ABC):
    """Abstract base class for all console commands."""

    SUCCESS = 0
    FAILURE = 1

    def __init__(self, config: Dict[str, Any], options: Optional[Dict[str, Any]] = None):
        """
        Initialize the command with configuration and parsed options.

        Args:
            config: Loaded configuration dictionary
            options: Command-line options (argument name -> value)
        """
        self.config = config
        self.options = options or {}
        self._validate_config(config)
        self.logger = self._setup_logger()

    @classmethod
    def from_config_file(cls, config_path: str, options: Optional[Dict[str, Any]] = None) -> 'CommandBase':
        return cls(ConfigLoader.load(config_path), options)

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        return default if value is None else value

    def _setup_logger(self) -> logging.Logger:
        """Set up logger for the command."""
        logger = logging.getLogger(self.__class__.__name__)

        # Verbose by default; --quiet or options.verbose=false only shows WARNING and above
        verbose = self.config.get('options', {}).get('verbose', True) and not self.options.get('quiet')
        logger.setLevel(logging.INFO if verbose else logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = CleanOutputFormatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def _log_section(self, title: str, level: str = 'warning') -> None:
        """Log a section header with separator lines."""
        log_func = getattr(self.logger, level)
        log_func("=" * 60)
        log_func(title)
        log_func("=" * 60)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate the configuration structure.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        ConfigLoader.connections(config)

    def _local_config(self) -> Dict[str, Any]:
        return self.config.get('local') or {}

    def _local_path(self) -> str:
        """Local project root (local.path, default: current directory)."""
        return os.path.abspath(os.path.expanduser(self._local_config().get('path') or '.'))

    def _local_storage_path(self) -> str:
        """Local media root (local.storage_path, relative to the project root)."""
        storage_path = self._local_config().get('storage_path') or 'storage/app'
        return os.path.join(self._local_path(), os.path.expanduser(storage_path))

    def _local_database(self) -> Dict[str, Any]:
        database = self._local_config().get('database') or {}
        if not database.get('database') or not database.get('username'):
            raise ConfigurationError("Local database is not configured ('local.database').")
        return database

    def _create_executor(self, server: str):
        """Factory for RemoteExecutor instances, separated for easier testing."""
        from handlers.remote_executor import RemoteExecutor
        return RemoteExecutor(server, self.config, logger=self.logger)

    def _create_local_runner(self):
        """Factory for LocalCommandRunner instances, separated for easier testing."""
        from handlers.local_runner import LocalCommandRunner
        return LocalCommandRunner(self._local_path(), logger=self.logger)

    def _create_storage(self, name: str):
        """Factory for storage disks, separated for easier testing."""
        from handlers.storage_handler import create_storage
        return create_storage(name, self.config)

    @abstractmethod
    def run(self) -> int:
        """Execute the command and return its exit code."""
        pass
