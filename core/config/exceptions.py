"""Configuration-related exceptions."""

from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Base exception for config errors."""

    pass


class ConfigFileError(ConfigError):
    """A problem with one specific config file."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ConfigNotFoundError(ConfigFileError):
    """Raised when an explicitly requested config file doesn't exist."""

    pass


class ConfigParseError(ConfigFileError):
    """Raised when config file has invalid YAML."""

    pass
