"""Data models for need approval runs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from engage.domain.models import ResolvedNeedRequest
from engage.matching.models import MatchResult
from engage.matching.utils import build_rationale_dict
from engage.notifications.models import NotificationResult


@dataclass
class ApprovalResult:
    """
    Outcome of approving one need and matching volunteers to it.

    Attributes:
        need_id: Need that was approved
        org_id: Organization the need belongs to
        status: approved, not_found, or error
        run_id: Identifier shared by every log line of this run
        started_at: UTC timestamp when the run began
        finished_at: UTC timestamp when the run completed
        need: The need with its effective time preference (approved runs only)
        matches: Ranked matches, best first
        candidate_count: Size of the candidate pool that was scored
        notification: Notification outcome, None when notification was not requested
        error_message: What went wrong, for not_found and error runs
    """

    need_id: str
    org_id: Optional[str]
    status: str  # "approved", "not_found", "error"
    run_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    need: Optional[ResolvedNeedRequest] = None
    matches: List[MatchResult] = field(default_factory=list)
    candidate_count: int = 0
    notification: Optional[NotificationResult] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == "approved"

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_response(self) -> Dict[str, Any]:
        """Build the JSON body returned to the web client.

        Approved runs give success, matchCount, needTitle, needTimePreference,
        needUrgency and matches; other runs give success=False and an error.
        """
        if not self.success or self.need is None:
            return {"success": False, "error": self.error_message or "Approval failed"}

        response = {
            "success": True,
            "matchCount": len(self.matches),
            "needTitle": self.need.title,
            "needTimePreference": self.need.effective_time_preference,
            "needUrgency": self.need.urgency_class,
            "matches": [build_rationale_dict(match) for match in self.matches],
        }
        if self.notification is not None:
            response["notification"] = self.notification.to_dict()
        return response
