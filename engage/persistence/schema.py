"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the profile, need and
notification tables and provides conversion methods to domain models.

Column names follow the hosted store the web app writes to, so that rows
read here go through the same normalization as rows read over its API.
List columns (gift_selections, availability_level, tags) hold JSON text.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, Index, Integer, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from engage.domain.models import Candidate, NeedRequest, NotificationRecord
from engage.normalization import RecordNormalizer
from engage.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()

_normalizer = RecordNormalizer()


class ProfileModel(Base):
    """ORM model for profiles table.

    Stores the matching-relevant part of a member profile.
    """

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)

    # JSON text, e.g. '["Cooking", "Prayer"]'
    gift_selections = Column(Text, nullable=True)
    availability_level = Column(Text, nullable=True)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "gift_selections": self.gift_selections,
            "availability_level": self.availability_level,
        }

    def to_domain(self) -> Candidate:
        """Convert ORM model to domain model.

        Returns:
            Candidate: Domain model instance
        """
        return _normalizer.candidate_from_record(self.to_record())


class NeedModel(Base):
    """ORM model for needs table.

    Scheduling columns are stored exactly as entered so that the
    time-preference resolver sees the raw values.
    """

    __tablename__ = "needs"

    id = Column(String(64), primary_key=True, nullable=False)
    org_id = Column(String(64), nullable=True)

    title = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)

    time_preference = Column(String(50), nullable=True)
    urgency = Column(String(50), nullable=True)
    date_time = Column(String(50), nullable=True)
    is_ongoing = Column(Boolean, nullable=False, default=False)
    ongoing_schedule = Column(String(50), nullable=True)
    ongoing_start_date = Column(String(50), nullable=True)
    ongoing_start_time = Column(String(20), nullable=True)

    status = Column(String(20), nullable=False, default="pending")
    approved_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_needs_org_status", "org_id", "status"),)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
            "time_preference": self.time_preference,
            "urgency": self.urgency,
            "date_time": self.date_time,
            "is_ongoing": self.is_ongoing,
            "ongoing_schedule": self.ongoing_schedule,
            "ongoing_start_date": self.ongoing_start_date,
            "ongoing_start_time": self.ongoing_start_time,
            "status": self.status,
            "approved_at": self.approved_at,
        }

    def to_domain(self) -> NeedRequest:
        """Convert ORM model to domain model.

        Returns:
            NeedRequest: Domain model instance
        """
        return _normalizer.need_from_record(self.to_record())


class NotificationModel(Base):
    """ORM model for notifications table.

    In-app inbox entries, one per member per matched need.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    org_id = Column(String(64), nullable=True)
    user_id = Column(String(64), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=True)
    payload = Column(Text, nullable=True)

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    read_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_notifications_user_created", "user_id", "created_at"),
        Index("idx_notifications_user_read", "user_id", "read_at"),
    )

    def to_domain(self) -> NotificationRecord:
        """Convert ORM model to domain model.

        Returns:
            NotificationRecord: Domain model instance
        """
        return NotificationRecord(
            id=self.id,
            org_id=self.org_id,
            user_id=self.user_id,
            type=self.type,
            title=self.title,
            message=self.message,
            payload=json.loads(self.payload) if self.payload else {},
            created_at=parse_db_datetime(self.created_at),
            read_at=parse_db_datetime(self.read_at),
        )

    @classmethod
    def from_domain(cls, record: NotificationRecord) -> "NotificationModel":
        """Create ORM model from domain model.

        Args:
            record: Domain model instance

        Returns:
            NotificationModel: ORM model instance
        """
        return cls(
            org_id=record.org_id,
            user_id=record.user_id,
            type=record.type,
            title=record.title,
            message=record.message,
            payload=json.dumps(record.payload),
            created_at=format_db_datetime(record.created_at),
            read_at=format_db_datetime(record.read_at),
        )


def encode_list_column(value: Any) -> Optional[str]:
    """Store list values as JSON text; text passes through unchanged."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value))
    return str(value)


def encode_schedule_column(value: Any) -> Optional[str]:
    """Store a schedule value as text, keeping naive datetimes naive."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def format_db_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage.

    Naive values are taken as UTC. Microseconds are kept so that text
    ordering matches time ordering.
    """
    return format_timestamp(dt, include_microseconds=True)


def parse_db_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string to a timezone-aware UTC datetime."""
    return parse_iso_datetime(dt_str)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        from sqlalchemy import inspect

        inspector = inspect(engine)
        tables = inspector.get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
