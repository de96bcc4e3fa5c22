"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

KNOWN_SECTIONS = {"matching", "notifications", "logging"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for likely mistakes that are still valid.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    unknown = sorted(str(key) for key in config_dict if key not in KNOWN_SECTIONS)
    if unknown:
        warning_messages.append(
            f"Unknown configuration sections will be ignored: {', '.join(unknown)}"
        )

    notifications = config_dict.get("notifications", {})
    if isinstance(notifications, dict) and notifications.get("enabled") is False:
        warning_messages.append(
            "Notifications are disabled; approved needs will not alert matched members"
        )

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        max_results = matching.get("max_results")
        if isinstance(max_results, int) and max_results > 50:
            warning_messages.append(
                f"Large matching.max_results ({max_results}) may flood members with notifications"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
