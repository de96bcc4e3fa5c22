"""Configuration management module for the Engage matching service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AppConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MatchingConfig,
    NotificationsConfig,
    TagMatchMode,
)

__all__ = [
    # Main loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "MatchingConfig",
    "NotificationsConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "TagMatchMode",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
