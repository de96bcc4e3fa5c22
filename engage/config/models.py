"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class TagMatchMode(str, Enum):
    """How candidate gift tags are compared with a need's required tags."""

    SUBSTRING = "substring"
    TOKEN = "token"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Ranking settings for the need matcher."""

    max_results: int = Field(
        10, ge=1, le=100, description="Maximum number of matches returned per need"
    )
    tag_match_mode: TagMatchMode = Field(
        TagMatchMode.SUBSTRING,
        description="substring (permissive, default) or token (word-boundary) tag matching",
    )
    timezone: Optional[str] = Field(
        None,
        description="IANA timezone used to read the hour of timezone-aware need timestamps",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the timezone name is known to the zoneinfo database."""
        if v is None:
            return None
        stripped = v.strip()
        if not stripped:
            return None
        try:
            ZoneInfo(stripped)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {stripped}") from e
        return stripped

    def tzinfo(self) -> Optional[ZoneInfo]:
        """Return the configured timezone, or None to use the host's."""
        return ZoneInfo(self.timezone) if self.timezone else None

    model_config = {"use_enum_values": True, "validate_default": True}


class NotificationsConfig(BaseModel):
    """Outbound workflow-trigger settings."""

    enabled: bool = Field(True, description="Trigger notifications for approved needs")
    workflow_key: str = Field(
        "need_match", min_length=1, description="Knock workflow triggered per matched member"
    )
    api_base_url: str = Field(
        "https://api.knock.app/v1", min_length=1, description="Knock API base URL"
    )
    request_timeout: int = Field(
        10, ge=1, le=120, description="Request timeout for trigger calls (seconds)"
    )
    max_retries: int = Field(
        3, ge=0, le=10, description="Number of retry attempts for failed triggers"
    )
    retry_initial_delay: float = Field(
        1.0, ge=0.0, le=60.0, description="Initial retry delay in seconds"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )

    @field_validator("workflow_key", "api_base_url")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace; trailing slashes are dropped from URLs."""
        stripped = v.strip().rstrip("/")
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True, "validate_default": True}


class AppConfig(BaseModel):
    """Root configuration object for the Engage matching service."""

    matching: MatchingConfig = Field(
        default_factory=MatchingConfig, description="Matcher settings"
    )
    notifications: NotificationsConfig = Field(
        default_factory=NotificationsConfig, description="Notification settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
