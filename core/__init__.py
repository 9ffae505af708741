"""Core module for the syncops framework."""
from .command_base import CommandBase
from .config_loader import ConfigLoader
from .deployment import DeploymentOrchestrator, DeployOptions

__all__ = ['CommandBase', 'ConfigLoader', 'DeploymentOrchestrator', 'DeployOptions']
