"""Data access layer (repositories) for persistence operations.

This module provides repository classes for profiles, needs and in-app
notifications. Repositories encapsulate database operations and return
domain models rather than ORM models. They flush but never commit; the
caller's get_session() block owns the transaction.
"""

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from engage.domain.models import Candidate, NeedRequest, NotificationRecord
from engage.normalization import RecordNormalizer
from engage.normalization.parsing import parse_flag
from engage.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    NeedModel,
    NotificationModel,
    ProfileModel,
    encode_list_column,
    encode_schedule_column,
    format_db_datetime,
)

logger = logging.getLogger(__name__)

EMPTY_LIST_VALUES = ("", "[]")

_PROFILE_FIELDS = ("full_name", "email")
_PROFILE_LIST_FIELDS = ("gift_selections", "availability_level")
_NEED_TEXT_FIELDS = (
    "org_id",
    "title",
    "description",
    "time_preference",
    "urgency",
    "ongoing_schedule",
    "ongoing_start_date",
    "ongoing_start_time",
    "status",
)


def _text_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class ProfileRepository:
    """Repository for member profile operations."""

    def __init__(self, session: Session, normalizer: Optional[RecordNormalizer] = None):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
            normalizer: Row normalizer (creates default if None)
        """
        self.session = session
        self.normalizer = normalizer or RecordNormalizer()

    def upsert(self, record: Mapping[str, Any]) -> Candidate:
        """Insert or update a profile from a store-shaped row.

        Args:
            record: Row with id, full_name, email, gift_selections, availability_level.
                List columns may be lists or JSON text.

        Returns:
            Persisted profile as a Candidate

        Raises:
            DataIntegrityError: If the row has no id or violates a constraint
            PersistenceError: If database error occurs
        """
        profile_id = record.get("id")
        if profile_id is None or not str(profile_id).strip():
            raise DataIntegrityError("Profile row has no id")
        profile_id = str(profile_id).strip()

        try:
            model = self.session.get(ProfileModel, profile_id)
            if model is None:
                model = ProfileModel(id=profile_id)
                self.session.add(model)

            for field in _PROFILE_FIELDS:
                if field in record:
                    setattr(model, field, _text_or_none(record[field]))
            for field in _PROFILE_LIST_FIELDS:
                if field in record:
                    setattr(model, field, encode_list_column(record[field]))

            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting profile {profile_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert profile due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting profile {profile_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert profile: {e}") from e

    def get_by_id(self, profile_id: str) -> Optional[Candidate]:
        """Retrieve a profile by id.

        Returns:
            Candidate if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(ProfileModel, profile_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving profile {profile_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve profile: {e}") from e

    def list_matchable(self) -> List[Candidate]:
        """List profiles that have both gift selections and availability.

        Profiles whose list columns are missing, blank or "[]" are left out
        at the query level; rows whose columns hold unparseable text are
        still returned and simply parse to empty lists. Results are ordered
        by profile id.

        Returns:
            Candidates in a stable order (empty list if none)

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(ProfileModel)
                .where(
                    ProfileModel.gift_selections.is_not(None),
                    ProfileModel.gift_selections.not_in(EMPTY_LIST_VALUES),
                    ProfileModel.availability_level.is_not(None),
                    ProfileModel.availability_level.not_in(EMPTY_LIST_VALUES),
                )
                .order_by(ProfileModel.id)
            )
            models = self.session.execute(stmt).scalars().all()
            return list(self.normalizer.candidates_from_records(m.to_record() for m in models))

        except SQLAlchemyError as e:
            logger.error(f"Error listing matchable profiles: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list profiles: {e}") from e


class NeedRepository:
    """Repository for need operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def upsert(self, record: Mapping[str, Any]) -> NeedRequest:
        """Insert or update a need from a store-shaped row.

        Args:
            record: Row using need store column names (id, title, tags,
                date_time, is_ongoing, ongoing_start_time, ...). tags may be a
                list or JSON text; date_time may be a datetime or text.

        Returns:
            Persisted need as a NeedRequest

        Raises:
            DataIntegrityError: If the row has no id or violates a constraint
            PersistenceError: If database error occurs
        """
        need_id = record.get("id")
        if need_id is None or not str(need_id).strip():
            raise DataIntegrityError("Need row has no id")
        need_id = str(need_id).strip()

        try:
            model = self.session.get(NeedModel, need_id)
            if model is None:
                model = NeedModel(id=need_id, title="", is_ongoing=False, status="pending")
                self.session.add(model)

            for field in _NEED_TEXT_FIELDS:
                if field in record:
                    setattr(model, field, _text_or_none(record[field]))
            if "tags" in record:
                model.tags = encode_list_column(record["tags"])
            if "date_time" in record:
                model.date_time = encode_schedule_column(record["date_time"])
            if "is_ongoing" in record:
                model.is_ongoing = parse_flag(record["is_ongoing"])
            if model.title is None:
                model.title = ""
            if model.status is None:
                model.status = "pending"

            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting need {need_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert need due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting need {need_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert need: {e}") from e

    def get_for_org(self, need_id: str, org_id: Optional[str] = None) -> Optional[NeedRequest]:
        """Retrieve a need, scoped to an organization.

        Args:
            need_id: Need identifier
            org_id: Owning organization; None skips the org check

        Returns:
            NeedRequest if found (and owned by org_id), None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(NeedModel).where(NeedModel.id == need_id)
            if org_id is not None:
                stmt = stmt.where(NeedModel.org_id == org_id)
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving need {need_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve need: {e}") from e

    def mark_approved(self, need_id: str, approved_at: Optional[datetime] = None) -> NeedRequest:
        """Set a need's status to approved.

        Args:
            need_id: Need identifier
            approved_at: Approval time (defaults to now, UTC)

        Returns:
            Updated NeedRequest

        Raises:
            RecordNotFoundError: If the need does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(NeedModel, need_id)
            if model is None:
                raise RecordNotFoundError(f"Need with id {need_id} not found")

            model.status = "approved"
            model.approved_at = format_db_datetime(approved_at or utc_now())
            self.session.flush()
            return model.to_domain()

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error approving need {need_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to approve need: {e}") from e

    def list_pending(self, org_id: str) -> List[NeedRequest]:
        """List an organization's needs still awaiting approval.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(NeedModel)
                .where(NeedModel.org_id == org_id, NeedModel.status == "pending")
                .order_by(NeedModel.id)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing pending needs for org {org_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list pending needs: {e}") from e


class NotificationRepository:
    """Repository for in-app notification operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def record(self, notification: NotificationRecord) -> NotificationRecord:
        """Insert an in-app notification.

        Returns:
            Persisted NotificationRecord with its assigned id

        Raises:
            DataIntegrityError: If the row violates a constraint
            PersistenceError: If database error occurs
        """
        try:
            model = NotificationModel.from_domain(notification)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(
                f"Integrity error recording notification for {notification.user_id}: {e}",
                exc_info=True,
            )
            raise DataIntegrityError(f"Failed to record notification: {e}") from e
        except SQLAlchemyError as e:
            logger.error(
                f"Error recording notification for {notification.user_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to record notification: {e}") from e

    def list_for_user(self, user_id: str, limit: int = 20) -> List[NotificationRecord]:
        """List a member's notifications, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list notifications: {e}") from e

    def unread_count(self, user_id: str) -> int:
        """Count a member's unread notifications.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(func.count())
                .select_from(NotificationModel)
                .where(NotificationModel.user_id == user_id, NotificationModel.read_at.is_(None))
            )
            return self.session.execute(stmt).scalar_one()

        except SQLAlchemyError as e:
            logger.error(f"Error counting unread notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count notifications: {e}") from e

    def mark_read(self, notification_id: int, read_at: Optional[datetime] = None) -> NotificationRecord:
        """Mark one notification as read; already-read rows keep their timestamp.

        Raises:
            RecordNotFoundError: If the notification does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(NotificationModel, notification_id)
            if model is None:
                raise RecordNotFoundError(f"Notification with id {notification_id} not found")

            if model.read_at is None:
                model.read_at = format_db_datetime(read_at or utc_now())
                self.session.flush()
            return model.to_domain()

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification_id} read: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notification read: {e}") from e

    def mark_all_read(self, user_id: str, read_at: Optional[datetime] = None) -> int:
        """Mark every unread notification of a member as read.

        Returns:
            Number of notifications updated

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(NotificationModel)
                .where(NotificationModel.user_id == user_id, NotificationModel.read_at.is_(None))
                .values(read_at=format_db_datetime(read_at or utc_now()))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount

        except SQLAlchemyError as e:
            logger.error(f"Error marking notifications read for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notifications read: {e}") from e
