"""Data models for the matching engine."""

from dataclasses import dataclass, field
from typing import List

from engage.domain.models import Candidate


@dataclass
class MatchResult:
    """Score of one candidate against one need.

    Only results with gift_overlap_count > 0 and a compatible availability
    are returned by the matcher; evaluate() produces the others too so that
    callers can explain why someone was left out.

    Attributes:
        candidate: The candidate that was scored
        gift_overlap_count: Number of candidate gift tags matching a required tag
        matching_tags: Those candidate tags, in the candidate's own order
        availability_score: 3 exact bucket, 2 candidate is Anytime, 1 need is Anytime, 0 none
        availability_is_compatible: Whether the schedules can work at all
        total_score: Ranking key, gift_overlap_count * 2 + availability_score
    """

    candidate: Candidate
    gift_overlap_count: int = 0
    matching_tags: List[str] = field(default_factory=list)
    availability_score: int = 0
    availability_is_compatible: bool = False
    total_score: int = 0

    @property
    def is_match(self) -> bool:
        """Whether this result passes the inclusion filter."""
        return self.gift_overlap_count > 0 and self.availability_is_compatible

    @property
    def candidate_id(self) -> str:
        return self.candidate.id
