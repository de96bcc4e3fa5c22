"""Core domain models for volunteers, needs, and in-app notifications.

This module defines the data structures used throughout the application:
- TimePreference: the four time-of-day buckets members and needs use
- Candidate: a volunteer profile evaluated against a need
- NeedRequest: a volunteer opportunity with its scheduling fields
- ResolvedNeedRequest: a need carrying its effective time preference
- NotificationRecord: an in-app notification row for a matched member

Store rows are converted into these models by engage.normalization, which
owns all lenient parsing. The models only trim and validate shapes.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from engage.utils.timestamps import ensure_utc


class TimePreference(str, Enum):
    """Time-of-day buckets shared by member availability and needs."""

    MORNINGS = "Mornings"
    AFTERNOONS = "Afternoons"
    NIGHTS = "Nights"
    ANYTIME = "Anytime"


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    stripped = v.strip()
    return stripped if stripped else None


class Candidate(BaseModel):
    """Volunteer profile as read from the profile store.

    gift_tags keeps the order the member selected them in during onboarding,
    which is also the order matched tags are reported in.
    """

    id: str = Field(..., description="Profile identifier")
    display_name: Optional[str] = Field(None, description="Member's full name")
    contact: Optional[str] = Field(None, description="Contact address, usually email")
    gift_tags: List[str] = Field(default_factory=list, description="Self-selected gift tags")
    availability_windows: List[str] = Field(
        default_factory=list, description="Time buckets the member can serve in"
    )

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        """Strip whitespace and reject empty identifiers."""
        if not v or not v.strip():
            raise ValueError("Candidate id cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("display_name", "contact")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank values become None."""
        return _blank_to_none(v)

    @field_validator("gift_tags", "availability_windows", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat missing sequences as empty."""
        return [] if v is None else v

    model_config = {"json_schema_extra": {"example": {
        "id": "7f1c2a",
        "display_name": "Ruth Miller",
        "contact": "ruth@example.org",
        "gift_tags": ["Cooking", "Hospitality"],
        "availability_windows": ["Mornings", "Nights"],
    }}}


class NeedRequest(BaseModel):
    """Volunteer opportunity as read from the need store.

    scheduled_at accepts raw text so that a malformed timestamp survives
    model validation and is handled by the time-preference resolver, which
    falls through to its next rule instead of failing.
    """

    id: str = Field(..., description="Need identifier")
    title: str = Field("", description="Short title shown to members")
    description: str = Field("", description="Free-text description")
    required_tags: List[str] = Field(
        default_factory=list, description="Gift tags the need is looking for"
    )
    urgency_class: Optional[str] = Field(
        None, description="Urgency classifier: asap, ongoing, or unset for normal"
    )
    explicit_time_preference: Optional[str] = Field(
        None, description="Time bucket chosen manually by a leader"
    )
    scheduled_at: Optional[Union[datetime, str]] = Field(
        None, description="Single fixed occurrence of the need"
    )
    is_recurring: bool = Field(False, description="Whether the need repeats on a schedule")
    recurring_schedule: Optional[str] = Field(
        None, description="Recurrence cadence: weekly, monthly, quarterly"
    )
    recurring_start_date: Optional[str] = Field(None, description="First recurrence date")
    recurring_start_time: Optional[str] = Field(None, description="Local start time, HH:MM")
    legacy_description_schedule_hint: Optional[str] = Field(
        None, description="Free text that may embed 'Ongoing Schedule: ... at HH:MM'"
    )
    org_id: Optional[str] = Field(None, description="Owning organization")
    status: Optional[str] = Field(None, description="Workflow status (pending, approved)")

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        """Strip whitespace and reject empty identifiers."""
        if not v or not v.strip():
            raise ValueError("Need id cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("title", "description", mode="before")
    @classmethod
    def none_to_blank(cls, v: Any) -> Any:
        """Treat missing text as empty."""
        return "" if v is None else v

    @field_validator("required_tags", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat missing tag lists as empty."""
        return [] if v is None else v

    @field_validator("urgency_class")
    @classmethod
    def normalize_urgency(cls, v: Optional[str]) -> Optional[str]:
        """Lower-case the urgency classifier; blank means normal."""
        v = _blank_to_none(v)
        return v.lower() if v else None

    @field_validator(
        "explicit_time_preference",
        "recurring_schedule",
        "recurring_start_date",
        "recurring_start_time",
        "org_id",
        "status",
    )
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank values become None."""
        return _blank_to_none(v)

    @field_validator("is_recurring", mode="before")
    @classmethod
    def none_to_false(cls, v: Any) -> Any:
        """A missing recurrence flag means a one-off need."""
        return False if v is None else v

    model_config = {"json_schema_extra": {"example": {
        "id": "need-42",
        "title": "Meals for the Johnson family",
        "description": "Ongoing Schedule: weekly on Tuesday at 17:30",
        "required_tags": ["Cooking", "Meal Prep"],
        "urgency_class": None,
        "explicit_time_preference": "Nights",
        "scheduled_at": None,
        "is_recurring": True,
        "recurring_schedule": "weekly",
        "recurring_start_time": "17:30",
    }}}


class ResolvedNeedRequest(NeedRequest):
    """A need whose effective time preference has already been resolved."""

    effective_time_preference: str = Field(
        ..., description="Single time bucket the need falls in"
    )


class NotificationRecord(BaseModel):
    """In-app notification for a member matched to a need."""

    id: Optional[int] = Field(None, description="Row identifier assigned by the store")
    org_id: Optional[str] = Field(None, description="Organization the need belongs to")
    user_id: str = Field(..., min_length=1, description="Recipient profile id")
    type: str = Field("need_match", description="Notification type")
    title: str = Field(..., description="Notification headline")
    message: Optional[str] = Field(None, description="Notification body text")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Structured event data")
    created_at: datetime = Field(..., description="When the notification was created (UTC)")
    read_at: Optional[datetime] = Field(None, description="When the member read it (UTC)")

    @field_validator("created_at", "read_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
