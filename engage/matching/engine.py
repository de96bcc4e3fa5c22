"""Matching engine for ranking volunteers against a need.

This module implements the matching logic that:
1. Counts gift tags overlapping the need's required tags
2. Scores availability against the need's effective time preference
3. Filters out candidates with no overlap or incompatible schedules
4. Ranks the rest by total score, keeping input order on ties
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from engage.config.models import MatchingConfig, TagMatchMode
from engage.domain.models import Candidate, ResolvedNeedRequest, TimePreference
from engage.logging import get_logger

from .models import MatchResult

logger = get_logger(__name__, component="matching")

DEFAULT_MAX_RESULTS = 10
GIFT_OVERLAP_WEIGHT = 2

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")

_ANYTIME = TimePreference.ANYTIME.value


def _tokens(text: str) -> List[str]:
    return _TOKEN_PATTERN.findall(text.lower())


def _contains_run(haystack: List[str], needle: List[str]) -> bool:
    """Whether needle appears as a contiguous run inside haystack."""
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(haystack[i:i + width] == needle for i in range(len(haystack) - width + 1))


def tags_match(
    gift_tag: str, required_tag: str, mode: TagMatchMode = TagMatchMode.SUBSTRING
) -> bool:
    """Compare a single gift tag with a single required tag.

    substring mode: case-insensitive substring containment in either direction,
    so "Cooking" matches "Meal Prep/Cooking" and "Art" matches "Cartography".

    token mode: same, but on word tokens, so "Cooking" still matches
    "Meal Prep/Cooking" while "Art" no longer matches "Cartography".

    Substring mode compares the tags exactly as given, so an empty tag is
    contained in every other tag; token mode never matches a tag without words.
    """
    if TagMatchMode(mode) == TagMatchMode.TOKEN:
        gift_tokens, required_tokens = _tokens(gift_tag), _tokens(required_tag)
        return _contains_run(gift_tokens, required_tokens) or _contains_run(
            required_tokens, gift_tokens
        )

    gift = gift_tag.lower()
    required = required_tag.lower()
    return required in gift or gift in required


def gift_overlap(
    gift_tags: Sequence[str],
    required_tags: Sequence[str],
    mode: TagMatchMode = TagMatchMode.SUBSTRING,
) -> List[str]:
    """Return the candidate's gift tags that match at least one required tag.

    Each gift tag is counted at most once no matter how many required tags
    it matches. Order follows gift_tags.

    Example:
        >>> gift_overlap(["Cooking", "Prayer"], ["Meal Prep/Cooking"])
        ['Cooking']
    """
    return [
        gift
        for gift in gift_tags
        if any(tags_match(gift, required, mode) for required in required_tags)
    ]


def availability_score(windows: Sequence[str], need_preference: str) -> int:
    """Score how well a candidate's availability fits a need's time bucket.

    Returns:
        3 if the candidate lists the need's exact bucket,
        2 if the candidate lists Anytime,
        1 if the need is Anytime,
        0 otherwise
    """
    if need_preference in windows:
        return 3
    if _ANYTIME in windows:
        return 2
    if need_preference == _ANYTIME:
        return 1
    return 0


def has_availability_match(windows: Sequence[str], need_preference: str) -> bool:
    """Whether the candidate can serve at the need's time at all."""
    return (
        need_preference == _ANYTIME
        or _ANYTIME in windows
        or need_preference in windows
    )


class NeedMatcher:
    """Ranks candidates for a single need.

    Responsibilities:
    - Score gift overlap and availability for each candidate
    - Drop candidates with no overlap or incompatible availability
    - Sort by total score (descending, stable) and truncate
    """

    def __init__(
        self,
        max_results: int = DEFAULT_MAX_RESULTS,
        tag_match_mode: TagMatchMode = TagMatchMode.SUBSTRING,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize NeedMatcher.

        Args:
            max_results: Default cap on returned matches
            tag_match_mode: How gift tags are compared with required tags
            logger_instance: Optional logger instance (defaults to module logger)

        Raises:
            ValueError: If max_results is not a positive integer
        """
        if max_results < 1:
            raise ValueError(f"max_results must be a positive integer, got {max_results}")

        self.max_results = max_results
        self.tag_match_mode = TagMatchMode(tag_match_mode)
        self.logger = logger_instance or logger

    @classmethod
    def from_config(
        cls, matching_config: MatchingConfig, logger_instance: Optional[logging.Logger] = None
    ) -> "NeedMatcher":
        return cls(
            max_results=matching_config.max_results,
            tag_match_mode=matching_config.tag_match_mode,
            logger_instance=logger_instance,
        )

    def evaluate(self, candidate: Candidate, need: ResolvedNeedRequest) -> MatchResult:
        """Score one candidate against a need.

        Args:
            candidate: Volunteer to score
            need: Need with its effective time preference already resolved

        Returns:
            MatchResult (check is_match for the inclusion decision)
        """
        matching_tags = gift_overlap(candidate.gift_tags, need.required_tags, self.tag_match_mode)
        preference = need.effective_time_preference
        score = availability_score(candidate.availability_windows, preference)

        return MatchResult(
            candidate=candidate,
            gift_overlap_count=len(matching_tags),
            matching_tags=matching_tags,
            availability_score=score,
            availability_is_compatible=has_availability_match(
                candidate.availability_windows, preference
            ),
            total_score=len(matching_tags) * GIFT_OVERLAP_WEIGHT + score,
        )

    def find_matches(
        self,
        candidates: Iterable[Candidate],
        need: ResolvedNeedRequest,
        max_results: Optional[int] = None,
    ) -> List[MatchResult]:
        """Rank candidates for a need.

        Algorithm:
        1. Evaluate every candidate
        2. Keep results with overlap > 0 and compatible availability
        3. Stable sort by total_score descending (ties keep input order)
        4. Truncate to max_results

        Args:
            candidates: Volunteers in the order the store returned them
            need: Need with its effective time preference already resolved
            max_results: Cap for this call (defaults to the matcher's cap)

        Returns:
            At most max_results MatchResults, best first

        Raises:
            ValueError: If max_results is not a positive integer
        """
        limit = self.max_results if max_results is None else max_results
        if limit < 1:
            raise ValueError(f"max_results must be a positive integer, got {limit}")

        evaluated = 0
        compatible: List[MatchResult] = []
        for candidate in candidates:
            evaluated += 1
            result = self.evaluate(candidate, need)
            if result.is_match:
                compatible.append(result)
            else:
                self.logger.debug(
                    f"Candidate {candidate.id} filtered out for need {need.id}",
                    extra={
                        "event": "matching.candidate.filtered",
                        "candidate_id": candidate.id,
                        "need_id": need.id,
                        "gift_overlap_count": result.gift_overlap_count,
                        "availability_is_compatible": result.availability_is_compatible,
                    },
                )

        # sorted() is stable, so equal scores keep candidate order
        ranked = sorted(compatible, key=lambda match: match.total_score, reverse=True)
        selected = ranked[:limit]

        self.logger.info(
            f"Ranked {len(compatible)} of {evaluated} candidates for need {need.id}",
            extra={
                "event": "matching.completed",
                "need_id": need.id,
                "time_preference": need.effective_time_preference,
                "candidates_evaluated": evaluated,
                "candidates_compatible": len(compatible),
                "matches_returned": len(selected),
            },
        )

        return selected


def find_matches(
    candidates: Iterable[Candidate],
    need: ResolvedNeedRequest,
    max_results: int = DEFAULT_MAX_RESULTS,
    tag_match_mode: TagMatchMode = TagMatchMode.SUBSTRING,
) -> List[MatchResult]:
    """Rank candidates for a need with a one-off matcher.

    Example:
        >>> need = resolve_need(NeedRequest(id="n1", required_tags=["Cooking"]))
        >>> [m.candidate.id for m in find_matches(candidates, need, max_results=5)]
    """
    return NeedMatcher(max_results=max_results, tag_match_mode=tag_match_mode).find_matches(
        candidates, need
    )
