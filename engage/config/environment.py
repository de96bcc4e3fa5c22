"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/engage.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        knock_api_key: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.knock_api_key = knock_api_key
        self.log_level = log_level


def load_environment_config(require_knock_api_key: bool = True) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Environment variables:
    - DATABASE_URL: SQLAlchemy URL of the profile/need store
      (default: sqlite:///./data/engage.db)
    - KNOCK_API_KEY: Secret key for the Knock workflow API; required when
      notifications are enabled
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Args:
        require_knock_api_key: Whether a missing KNOCK_API_KEY is an error

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    database_url = os.getenv("DATABASE_URL")
    knock_api_key = os.getenv("KNOCK_API_KEY")
    log_level = os.getenv("LOG_LEVEL")

    if require_knock_api_key and not (knock_api_key and knock_api_key.strip()):
        errors.append("Missing required environment variable: KNOCK_API_KEY")

    if database_url is not None and not database_url.strip():
        errors.append("DATABASE_URL is set but empty")
    elif database_url and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a URL such as {DEFAULT_DATABASE_URL}"
        )

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set notifications.enabled to false to run without KNOCK_API_KEY",
                "Check that DATABASE_URL is a SQLAlchemy connection URL",
            ],
        )

    return EnvironmentConfig(
        database_url=database_url.strip() if database_url else None,
        knock_api_key=knock_api_key.strip() if knock_api_key else None,
        log_level=log_level.upper() if log_level else None,
    )
