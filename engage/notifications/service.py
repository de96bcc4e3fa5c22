"""Notification service for telling members about needs that match them.

This module provides the main NotificationService class that orchestrates
the notification flow: payload and template rendering, in-app record
creation, and workflow triggering with retry/backoff.
"""

import logging
import time
from typing import Any, Dict, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from engage.config.models import NotificationsConfig
from engage.domain.models import ResolvedNeedRequest
from engage.logging import get_logger
from engage.logging.context import log_context
from engage.matching.models import MatchResult
from engage.persistence.exceptions import PersistenceError
from engage.persistence.repositories import NotificationRepository

from .knock_client import KnockClient
from .models import (
    NotificationBatch,
    NotificationResult,
    NotificationTemplateError,
    WorkflowTriggerError,
)
from .payloads import build_match_notifications
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

MAX_RETRY_DELAY = 60.0


class NotificationService:
    """Service for notifying members matched to an approved need.

    Coordinates the entire notification flow:
    1. Skip when notifications are disabled or nothing matched
    2. Build workflow payloads and render in-app notification text
    3. Record in-app notifications in a savepoint (caller commits)
    4. Trigger the workflow once per recipient with retry/backoff,
       after the caller has committed

    Trigger failures are counted in the result, never raised.
    """

    def __init__(
        self,
        knock_client: Optional[KnockClient] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            knock_client: Workflow client (required when notifications are enabled)
            template_renderer: Template renderer instance (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.knock_client = knock_client
        self.template_renderer = template_renderer or TemplateRenderer()
        self.logger = logger_instance or logger

    def notify_need_matches(
        self,
        need: ResolvedNeedRequest,
        matches: Sequence[MatchResult],
        notifications_config: NotificationsConfig,
        notification_repo: Optional[NotificationRepository] = None,
        org_id: Optional[str] = None,
    ) -> NotificationResult:
        """Notify every matched member about a need.

        Runs prepare_batch, record_in_app and deliver in one go. Callers that
        own a transaction should record inside it and deliver after commit.

        Args:
            need: The approved need, with its effective time preference
            matches: Ranked matches for the need
            notifications_config: Workflow and retry settings
            notification_repo: Repository for in-app rows (tied to caller's session)
            org_id: Organization the need belongs to (defaults to need.org_id)

        Returns:
            NotificationResult with per-recipient delivery counts
        """
        batch = self.prepare_batch(need, matches, notifications_config, org_id)
        if batch.outcome is not None:
            return batch.outcome

        if notification_repo is not None:
            self.record_in_app(batch, notification_repo)

        return self.deliver(batch, notifications_config)

    def prepare_batch(
        self,
        need: ResolvedNeedRequest,
        matches: Sequence[MatchResult],
        notifications_config: NotificationsConfig,
        org_id: Optional[str] = None,
    ) -> NotificationBatch:
        """Build payloads and in-app records, or settle the outcome early.

        The batch carries an outcome when notifications are disabled, nothing
        matched, no workflow client is configured or templates fail to render.
        """
        org_id = org_id or need.org_id

        with log_context(need_id=need.id):
            if not notifications_config.enabled:
                self.logger.info(
                    f"Skipping notifications for need {need.id} - notifications disabled",
                    extra={"event": "notification.skip", "reason": "disabled"},
                )
                return NotificationBatch(
                    need_id=need.id, outcome=NotificationResult(need_id=need.id, status="skipped")
                )

            if not matches:
                self.logger.info(
                    f"Skipping notifications for need {need.id} - no matches",
                    extra={"event": "notification.skip", "reason": "no_matches"},
                )
                return NotificationBatch(
                    need_id=need.id, outcome=NotificationResult(need_id=need.id, status="skipped")
                )

            recipient_count = len(matches)

            if self.knock_client is None:
                error_msg = "Notifications are enabled but no workflow client is configured"
                self.logger.error(error_msg, extra={"event": "notification.error"})
                return NotificationBatch(
                    need_id=need.id,
                    outcome=NotificationResult(
                        need_id=need.id,
                        recipient_count=recipient_count,
                        failed=recipient_count,
                        status="failed",
                        errors=[error_msg],
                    ),
                )

            try:
                recipient_payloads, records = build_match_notifications(
                    need, matches, org_id, renderer=self.template_renderer
                )
            except NotificationTemplateError as e:
                # Template errors are fatal (developer misconfiguration)
                error_msg = f"Template rendering failed: {e}"
                self.logger.error(error_msg, exc_info=True)
                return NotificationBatch(
                    need_id=need.id,
                    outcome=NotificationResult(
                        need_id=need.id,
                        recipient_count=recipient_count,
                        failed=recipient_count,
                        status="failed",
                        errors=[error_msg],
                    ),
                )

            return NotificationBatch(
                need_id=need.id, recipient_payloads=recipient_payloads, records=records
            )

    def record_in_app(self, batch: NotificationBatch, notification_repo: NotificationRepository) -> int:
        """Write the batch's in-app rows inside a savepoint.

        Failures roll back only these rows and are logged; the caller's
        transaction stays usable.

        Returns:
            Number of rows recorded (0 on failure)
        """
        if batch.outcome is not None or not batch.records:
            return 0

        with log_context(need_id=batch.need_id):
            try:
                with notification_repo.session.begin_nested():
                    for record in batch.records:
                        notification_repo.record(record)
            except (PersistenceError, SQLAlchemyError) as e:
                self.logger.error(
                    f"Failed to record in-app notifications for need {batch.need_id}: {e}",
                    extra={"event": "notification.record.failure", "error_type": type(e).__name__},
                )
                return 0

            self.logger.info(
                f"Recorded {len(batch.records)} in-app notifications for need {batch.need_id}",
                extra={"event": "notification.recorded", "count": len(batch.records)},
            )
            return len(batch.records)

    def deliver(
        self, batch: NotificationBatch, notifications_config: NotificationsConfig
    ) -> NotificationResult:
        """Trigger the workflow once per recipient with retry/backoff.

        Trigger failures are counted in the result, never raised.
        """
        if batch.outcome is not None:
            return batch.outcome

        with log_context(need_id=batch.need_id):
            recipient_count = batch.recipient_count
            delivered = 0
            total_attempts = 0
            errors = []
            for recipient_id, payload in batch.recipient_payloads:
                success, attempts, error = self._trigger_with_retry(
                    recipient_id, payload, notifications_config
                )
                total_attempts += attempts
                if success:
                    delivered += 1
                else:
                    errors.append(f"{recipient_id}: {error}")

            failed = recipient_count - delivered
            if failed == 0:
                status = "sent"
            elif delivered == 0:
                status = "failed"
            else:
                status = "partial"

            self.logger.info(
                f"Notification batch complete for need {batch.need_id}: {delivered} delivered, "
                f"{failed} failed (total: {recipient_count})",
                extra={
                    "event": "notification.batch.complete",
                    "delivered": delivered,
                    "failed": failed,
                    "attempts": total_attempts,
                    "status": status,
                },
            )

            return NotificationResult(
                need_id=batch.need_id,
                recipient_count=recipient_count,
                delivered=delivered,
                failed=failed,
                attempts=total_attempts,
                status=status,
                errors=errors,
            )

    def _trigger_with_retry(
        self,
        recipient_id: str,
        payload: Dict[str, Any],
        notifications_config: NotificationsConfig,
    ) -> Tuple[bool, int, Optional[str]]:
        """Trigger the workflow for one recipient, retrying transient failures.

        Returns:
            Tuple of (success, attempts made, last error message)
        """
        max_attempts = notifications_config.max_retries + 1
        last_error = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = notifications_config.retry_initial_delay * (
                    notifications_config.retry_backoff_multiplier ** (attempt - 2)
                )
                delay = min(delay, MAX_RETRY_DELAY)
                self.logger.warning(
                    f"Retrying trigger for {recipient_id} (attempt {attempt}/{max_attempts}) "
                    f"after {delay:.1f}s delay",
                    extra={
                        "event": "notification.trigger.retry",
                        "recipient_id": recipient_id,
                        "attempt": attempt,
                    },
                )
                time.sleep(delay)

            try:
                self.knock_client.trigger_workflow(
                    notifications_config.workflow_key, [recipient_id], payload
                )
                self.logger.info(
                    f"Workflow triggered for {recipient_id} (attempts: {attempt})",
                    extra={
                        "event": "notification.trigger.success",
                        "recipient_id": recipient_id,
                        "attempt": attempt,
                    },
                )
                return True, attempt, None

            except WorkflowTriggerError as e:
                last_error = str(e)
                retry_remaining = e.retryable and attempt < max_attempts

                if retry_remaining:
                    self.logger.warning(
                        f"Workflow trigger failed for {recipient_id} "
                        f"(attempt {attempt}/{max_attempts}): {e}",
                        extra={
                            "event": "notification.trigger.failure",
                            "recipient_id": recipient_id,
                            "attempt": attempt,
                            "status_code": e.status_code,
                            "retry_remaining": True,
                        },
                    )
                    continue

                self.logger.error(
                    f"Workflow trigger failed for {recipient_id} after {attempt} attempt(s): {e}",
                    extra={
                        "event": "notification.trigger.failure",
                        "recipient_id": recipient_id,
                        "attempt": attempt,
                        "status_code": e.status_code,
                        "retry_remaining": False,
                    },
                )
                return False, attempt, last_error

        return False, max_attempts, last_error
