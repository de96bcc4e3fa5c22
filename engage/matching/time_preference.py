"""Effective time-preference resolution for needs.

A need's effective time preference is the single bucket (Mornings,
Afternoons, Nights, Anytime) the matcher compares against member
availability. It is derived from the need's scheduling fields with a fixed
precedence so that a leader's manual choice on urgent needs is never
overridden, while auto-detection fills the gaps elsewhere:

1. urgency "asap": the manual preference, verbatim
2. scheduled_at: bucket of the timestamp's local hour
3. recurring need with a start time: bucket of that HH:MM
4. legacy "Ongoing Schedule: ... at HH:MM" text in the description
5. the manual preference, or Anytime

Every parser here returns None on bad input and the cascade moves on, so
resolution always yields a bucket and never raises.
"""

import re
from datetime import datetime, tzinfo
from typing import Optional, Union

from engage.domain.models import NeedRequest, ResolvedNeedRequest, TimePreference
from engage.logging import get_logger
from engage.utils.timestamps import parse_schedule_datetime

logger = get_logger(__name__, component="matching")

ASAP_URGENCY = "asap"
LEGACY_SCHEDULE_MARKER = "Ongoing Schedule:"

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")
_LEGACY_TIME_PATTERN = re.compile(r"at (\d{1,2}:\d{2})")


def bucket_for_hour(hour: int) -> str:
    """Map an hour of day (0-23) to its time bucket.

    [5, 12) is Mornings, [12, 17) is Afternoons, everything else is Nights.
    Never returns Anytime.
    """
    if 5 <= hour < 12:
        return TimePreference.MORNINGS.value
    if 12 <= hour < 17:
        return TimePreference.AFTERNOONS.value
    return TimePreference.NIGHTS.value


def detect_from_datetime(
    value: Union[datetime, str, None], tz: Optional[tzinfo] = None
) -> Optional[str]:
    """Bucket a single-occurrence timestamp by its local hour.

    Naive values are already wall-clock time. Aware values are converted to
    tz, or to the host timezone when tz is None.

    Args:
        value: datetime or ISO 8601 text
        tz: Timezone the need takes place in

    Returns:
        Bucket label, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        moment = parse_schedule_datetime(value)
    else:
        moment = None

    if moment is None:
        return None

    if moment.tzinfo is not None:
        moment = moment.astimezone(tz) if tz is not None else moment.astimezone()

    return bucket_for_hour(moment.hour)


def detect_from_clock_time(value: Optional[str]) -> Optional[str]:
    """Bucket a local HH:MM (or HH:MM:SS) start time.

    Returns:
        Bucket label, or None if the text is not a valid clock time
    """
    if not isinstance(value, str):
        return None

    match = _CLOCK_PATTERN.match(value)
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3)) if match.group(3) else 0
    if hour > 23 or minute > 59 or seconds > 59:
        return None

    return bucket_for_hour(hour)


def extract_legacy_schedule_time(hint: Optional[str]) -> Optional[str]:
    """Pull the "at HH:MM" token out of a legacy ongoing-schedule description.

    Only text after the "Ongoing Schedule:" marker is searched.

    Returns:
        The HH:MM text, or None when the marker or the token is absent
    """
    if not isinstance(hint, str) or LEGACY_SCHEDULE_MARKER not in hint:
        return None

    _, _, schedule_text = hint.partition(LEGACY_SCHEDULE_MARKER)
    match = _LEGACY_TIME_PATTERN.search(schedule_text)
    return match.group(1) if match else None


def resolve_effective_time_preference(need: NeedRequest, tz: Optional[tzinfo] = None) -> str:
    """Derive the single time bucket a need falls in.

    Args:
        need: Need with its raw scheduling fields
        tz: Timezone used to read the hour of timezone-aware timestamps

    Returns:
        One of Mornings, Afternoons, Nights, Anytime (or, for asap needs,
        the manual preference exactly as the leader entered it)
    """
    manual = need.explicit_time_preference

    if need.urgency_class == ASAP_URGENCY:
        return manual or TimePreference.ANYTIME.value

    if need.scheduled_at is not None:
        bucket = detect_from_datetime(need.scheduled_at, tz)
        if bucket:
            return bucket
        logger.debug(
            f"Unparseable scheduled_at for need {need.id}, falling through",
            extra={"event": "time_preference.fallthrough", "need_id": need.id, "rule": "scheduled_at"},
        )

    if need.is_recurring and need.recurring_start_time:
        bucket = detect_from_clock_time(need.recurring_start_time)
        if bucket:
            return bucket
        logger.debug(
            f"Unparseable recurring_start_time for need {need.id}, falling through",
            extra={"event": "time_preference.fallthrough", "need_id": need.id, "rule": "recurring"},
        )

    legacy_time = extract_legacy_schedule_time(need.legacy_description_schedule_hint)
    if legacy_time:
        bucket = detect_from_clock_time(legacy_time)
        if bucket:
            return bucket

    return manual or TimePreference.ANYTIME.value


def resolve_need(need: NeedRequest, tz: Optional[tzinfo] = None) -> ResolvedNeedRequest:
    """Return a copy of the need carrying its effective time preference."""
    return ResolvedNeedRequest(
        **need.model_dump(),
        effective_time_preference=resolve_effective_time_preference(need, tz),
    )
