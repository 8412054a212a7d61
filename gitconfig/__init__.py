"""
Git-backed configuration.

Clones a git repository into a private temp directory and reads the
``application.properties`` file at its root.

Usage:
    from gitconfig import GitConfigurationService

    with GitConfigurationService("https://example.com/config.git") as service:
        config = service.get_configuration()
"""

from gitconfig.adapters.git_service import GitConfigurationService
from gitconfig.config.settings import GitConfigurationSettings
from gitconfig.errors.errors import (
    CloneError,
    ConfigLoadError,
    ConfigReadError,
    ConfigurationError,
    GitConfigurationError,
    PropertiesParseError,
    ReleaseError,
    StagingPathError,
)
from gitconfig.types.types import ReadErrorPolicy, ServiceState

__all__ = [
    # Main entry point
    "GitConfigurationService",
    "GitConfigurationSettings",
    # Types
    "ReadErrorPolicy",
    "ServiceState",
    # Errors
    "GitConfigurationError",
    "ConfigurationError",
    "ConfigLoadError",
    "StagingPathError",
    "CloneError",
    "ConfigReadError",
    "PropertiesParseError",
    "ReleaseError",
]
