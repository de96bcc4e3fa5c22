"""Data models and exceptions for the notification service.

This module defines result types and custom exceptions used throughout
the need-match notification flow.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from engage.domain.models import NotificationRecord


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class WorkflowTriggerError(NotificationError):
    """Raised when a notification workflow trigger is rejected or cannot be sent.

    Server errors (5xx), rate limiting (429), timeouts and connection
    failures are retryable; other client errors are not.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False) -> None:
        """Initialize trigger error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code, or None when no response was received
            retryable: Whether a later attempt may succeed
        """
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


@dataclass
class NotificationResult:
    """Outcome of notifying the members matched to one need.

    Attributes:
        need_id: Need the notifications are about
        recipient_count: Number of matched members
        delivered: Members whose workflow trigger succeeded
        failed: Members whose trigger failed after all attempts
        attempts: Total trigger attempts across all members
        status: Outcome (sent, partial, failed, skipped)
        errors: Last error message for each failed member
    """

    need_id: str
    recipient_count: int = 0
    delivered: int = 0
    failed: int = 0
    attempts: int = 0
    status: str = "skipped"  # "sent", "partial", "failed", "skipped"
    errors: List[str] = field(default_factory=list)

    def is_success(self) -> bool:
        """Check if every matched member was notified.

        Returns:
            True if status is "sent", False otherwise
        """
        return self.status == "sent"

    def to_dict(self) -> dict:
        return {
            "need_id": self.need_id,
            "recipient_count": self.recipient_count,
            "delivered": self.delivered,
            "failed": self.failed,
            "attempts": self.attempts,
            "status": self.status,
            "errors": list(self.errors),
        }


@dataclass
class NotificationBatch:
    """Notifications prepared for one need, ready to record and deliver.

    When outcome is set the batch is already settled (skipped, or failed
    before any trigger) and nothing should be recorded or delivered.

    Attributes:
        need_id: Need the notifications are about
        recipient_payloads: (recipient_id, payload) pairs in rank order
        records: In-app notification per recipient
        outcome: Final result when there is nothing to deliver
    """

    need_id: str
    recipient_payloads: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    records: List[NotificationRecord] = field(default_factory=list)
    outcome: Optional[NotificationResult] = None

    @property
    def recipient_count(self) -> int:
        return len(self.recipient_payloads)
