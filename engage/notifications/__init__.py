"""Notification service for telling members about needs that match them.

This module provides the complete notification flow:
- NotificationService: Main service for notifying matched members
- NotificationResult: Result data structure for notification outcomes
- TemplateRenderer: Jinja2-based in-app notification rendering
- KnockClient: Knock workflow trigger client over requests
- Payload utilities: per-recipient payloads and in-app records
"""

from .knock_client import KnockClient
from .models import (
    NotificationBatch,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
    WorkflowTriggerError,
)
from .payloads import build_match_notifications, build_recipient_payloads
from .service import NotificationService
from .templates import TemplateRenderer

__all__ = [
    # Main service
    "NotificationService",
    # Models and results
    "NotificationResult",
    "NotificationBatch",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "WorkflowTriggerError",
    # Components
    "TemplateRenderer",
    "KnockClient",
    # Utilities
    "build_match_notifications",
    "build_recipient_payloads",
]
