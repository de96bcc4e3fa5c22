"""Approval workflow: approve a need, match volunteers, notify them."""

from contextlib import AbstractContextManager
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from engage.config.models import AppConfig
from engage.logging import get_logger
from engage.logging.context import log_context
from engage.matching.engine import NeedMatcher
from engage.matching.time_preference import resolve_need
from engage.notifications.service import NotificationService
from engage.persistence.database import get_session
from engage.persistence.exceptions import PersistenceError
from engage.persistence.repositories import (
    NeedRepository,
    NotificationRepository,
    ProfileRepository,
)
from engage.utils.timestamps import utc_now

from .models import ApprovalResult

logger = get_logger(__name__, component="approval")


class NeedApprovalWorkflow:
    """
    Approves a need and notifies the volunteers who fit it.

    One transaction covers the status change and the in-app notifications.
    Workflow triggers go out only after it has committed, so a failed
    approval never notifies anyone.
    """

    def __init__(
        self,
        app_config: AppConfig,
        notification_service: Optional[NotificationService] = None,
        matcher: Optional[NeedMatcher] = None,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_session,
    ):
        """
        Initialize the workflow.

        Args:
            app_config: Application configuration
            notification_service: Service for notifying matched members
                (creates one without a workflow client if None)
            matcher: Need matcher (built from app_config.matching if None)
            session_factory: Context manager factory yielding a session
        """
        self.app_config = app_config
        self.notification_service = notification_service or NotificationService()
        self.matcher = matcher or NeedMatcher.from_config(app_config.matching)
        self.session_factory = session_factory

    def approve(
        self,
        need_id: str,
        org_id: Optional[str],
        notify: bool = True,
        max_results: Optional[int] = None,
    ) -> ApprovalResult:
        """
        Approve a need, rank candidates, and notify the matches.

        This method:
        1. Loads the need for the organization
        2. Marks it approved
        3. Loads the matchable candidate pool
        4. Resolves the need's effective time preference and ranks candidates
        5. Records in-app notifications when notify is set
        6. Commits, then triggers the notification workflow

        Args:
            need_id: Need to approve
            org_id: Organization that owns the need
            notify: Whether to notify matched members
            max_results: Cap on matches (defaults to the configured max_results)

        Returns:
            ApprovalResult; persistence failures give status "error" rather than raising
        """
        run_id = uuid4().hex
        result = ApprovalResult(
            need_id=need_id, org_id=org_id, status="error", run_id=run_id, started_at=utc_now()
        )
        batch = None

        with log_context(run_id=run_id, need_id=need_id, org_id=org_id):
            logger.info(
                f"Approval started for need {need_id}",
                extra={"event": "approval.started", "notify": notify},
            )

            try:
                with self.session_factory() as session:
                    need_repo = NeedRepository(session)

                    need = need_repo.get_for_org(need_id, org_id)
                    if need is None:
                        logger.warning(
                            f"Need {need_id} not found for org {org_id}",
                            extra={"event": "approval.need.not_found"},
                        )
                        result.status = "not_found"
                        result.error_message = "Need not found"
                        result.finished_at = utc_now()
                        return result

                    need = need_repo.mark_approved(need_id, result.started_at)
                    logger.info(
                        f"Need {need_id} approved",
                        extra={"event": "approval.need.approved"},
                    )

                    candidates = ProfileRepository(session).list_matchable()
                    resolved = resolve_need(need, self.app_config.matching.tzinfo())
                    matches = self.matcher.find_matches(candidates, resolved, max_results)

                    result.need = resolved
                    result.matches = matches
                    result.candidate_count = len(candidates)

                    if notify:
                        batch = self.notification_service.prepare_batch(
                            resolved, matches, self.app_config.notifications, org_id=org_id
                        )
                        self.notification_service.record_in_app(
                            batch, NotificationRepository(session)
                        )

                result.status = "approved"

            except (PersistenceError, SQLAlchemyError) as e:
                result.status = "error"
                result.error_message = str(e)
                result.finished_at = utc_now()
                logger.error(
                    f"Approval failed for need {need_id}: {e}",
                    extra={"event": "approval.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )
                return result

            if batch is not None:
                result.notification = self.notification_service.deliver(
                    batch, self.app_config.notifications
                )

            result.finished_at = utc_now()
            logger.info(
                f"Approval completed for need {need_id}: {len(result.matches)} matches "
                f"from {result.candidate_count} candidates",
                extra={
                    "event": "approval.completed",
                    "duration_ms": int(result.duration_seconds * 1000),
                    "match_count": len(result.matches),
                    "candidate_count": result.candidate_count,
                    "time_preference": result.need.effective_time_preference,
                    "notification_status": (
                        result.notification.status if result.notification else None
                    ),
                },
            )

            return result
