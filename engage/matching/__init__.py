"""Volunteer matching for approved needs.

This module provides:
- resolve_effective_time_preference / resolve_need: time bucket of a need
- NeedMatcher / find_matches: gift and availability scoring and ranking
- MatchResult: score of one candidate against one need
- Utility functions for notification payloads and API responses
"""

from .engine import (
    NeedMatcher,
    availability_score,
    find_matches,
    gift_overlap,
    has_availability_match,
    tags_match,
)
from .models import MatchResult
from .time_preference import (
    bucket_for_hour,
    detect_from_clock_time,
    detect_from_datetime,
    extract_legacy_schedule_time,
    resolve_effective_time_preference,
    resolve_need,
)
from .utils import (
    availability_match_description,
    build_notification_payload,
    build_rationale_dict,
    time_preference_display,
)

__all__ = [
    "NeedMatcher",
    "MatchResult",
    "find_matches",
    "gift_overlap",
    "tags_match",
    "availability_score",
    "has_availability_match",
    "bucket_for_hour",
    "detect_from_datetime",
    "detect_from_clock_time",
    "extract_legacy_schedule_time",
    "resolve_effective_time_preference",
    "resolve_need",
    "time_preference_display",
    "availability_match_description",
    "build_notification_payload",
    "build_rationale_dict",
]
