"""Utility functions for preparing match results for downstream consumers.

This module provides helpers for building notification payloads, API
response entries, and the human-readable labels shown alongside a match.
"""

from typing import Any, Dict

from engage.domain.models import NeedRequest, ResolvedNeedRequest, TimePreference

from .models import MatchResult

DEFAULT_URGENCY_LABEL = "normal"

_TIME_PREFERENCE_LABELS = {
    TimePreference.MORNINGS.value: "🌅 Mornings",
    TimePreference.AFTERNOONS.value: "☀️ Afternoons",
    TimePreference.NIGHTS.value: "🌙 Nights",
    TimePreference.ANYTIME.value: "🕐 Anytime",
}

_AVAILABILITY_DESCRIPTIONS = {
    3: "Perfect time match",
    2: "Flexible availability",
    1: "Compatible timing",
}


def time_preference_display(preference: str) -> str:
    """Label a time bucket for display; unknown labels are returned unchanged."""
    return _TIME_PREFERENCE_LABELS.get(preference, preference)


def availability_match_description(score: int) -> str:
    """Describe an availability score in words."""
    return _AVAILABILITY_DESCRIPTIONS.get(score, "No time match")


def build_notification_payload(need: ResolvedNeedRequest, match_result: MatchResult) -> Dict[str, Any]:
    """Build the workflow payload for one matched member.

    Args:
        need: The approved need, with its effective time preference
        match_result: The member's MatchResult

    Returns:
        Dict with keys:
        - need_id: Need identifier
        - need_title: Need title
        - need_description: Need description
        - match_tags: Matched gift tags joined with ", "
        - time_preference: Effective time preference of the need
        - availability_score: Member's availability score (0-3)
        - urgency: Urgency class, "normal" when unset
    """
    return {
        "need_id": need.id,
        "need_title": need.title,
        "need_description": need.description,
        "match_tags": ", ".join(match_result.matching_tags),
        "time_preference": need.effective_time_preference,
        "availability_score": match_result.availability_score,
        "urgency": urgency_label(need),
    }


def build_rationale_dict(match_result: MatchResult) -> Dict[str, Any]:
    """Build the per-match entry returned by the approval API.

    Keys use the camelCase names the web client reads.
    """
    candidate = match_result.candidate
    return {
        "id": candidate.id,
        "name": candidate.display_name,
        "email": candidate.contact,
        "matchingGifts": list(match_result.matching_tags),
        "giftOverlapScore": match_result.gift_overlap_count,
        "availabilityScore": match_result.availability_score,
        "totalScore": match_result.total_score,
        "availabilityMatch": match_result.availability_is_compatible,
        "availabilityDescription": availability_match_description(match_result.availability_score),
    }


def urgency_label(need: NeedRequest) -> str:
    return need.urgency_class or DEFAULT_URGENCY_LABEL
