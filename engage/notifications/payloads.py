"""Payload resolution for need-match notifications.

This module turns ranked matches into the per-recipient workflow payloads
and the in-app notification records written for each matched member.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from engage.domain.models import NotificationRecord, ResolvedNeedRequest
from engage.matching.models import MatchResult
from engage.matching.utils import build_notification_payload
from engage.utils.timestamps import utc_now

from .templates import TemplateRenderer

NEED_MATCH_TYPE = "need_match"


def build_recipient_payloads(
    need: ResolvedNeedRequest, matches: Sequence[MatchResult]
) -> List[Tuple[str, Dict[str, Any]]]:
    """Pair each matched member's id with their workflow payload, in rank order."""
    return [
        (match.candidate.id, build_notification_payload(need, match))
        for match in matches
    ]


def build_match_notifications(
    need: ResolvedNeedRequest,
    matches: Sequence[MatchResult],
    org_id: Optional[str],
    renderer: Optional[TemplateRenderer] = None,
    created_at: Optional[datetime] = None,
) -> Tuple[List[Tuple[str, Dict[str, Any]]], List[NotificationRecord]]:
    """Build everything needed to notify the members matched to a need.

    Args:
        need: The approved need, with its effective time preference
        matches: Ranked matches for the need
        org_id: Organization the need belongs to
        renderer: Template renderer (creates default if None)
        created_at: Timestamp for the in-app rows (defaults to now, UTC)

    Returns:
        Tuple of:
        - (recipient_id, payload) pairs for the workflow trigger
        - NotificationRecord per recipient for the in-app inbox

    Raises:
        NotificationTemplateError: If the title or message cannot be rendered
    """
    renderer = renderer or TemplateRenderer()
    created_at = created_at or utc_now()

    recipient_payloads = build_recipient_payloads(need, matches)

    records = []
    for recipient_id, payload in recipient_payloads:
        rendered = renderer.render(payload)
        records.append(
            NotificationRecord(
                org_id=org_id,
                user_id=recipient_id,
                type=NEED_MATCH_TYPE,
                title=rendered["title"],
                message=rendered["message"],
                payload=payload,
                created_at=created_at,
            )
        )

    return recipient_payloads, records
