"""Record normalization: store rows to Candidate and NeedRequest models.

This is the single place where loosely-typed store rows are interpreted:
1. Column names of the hosted store are mapped to domain field names
2. List-shaped columns are parsed leniently (see parsing.py)
3. Blank text becomes None, identifiers become strings
4. Rows that cannot form a valid model are logged and skipped in batches
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Iterator, Mapping, Optional

from pydantic import ValidationError

from engage.domain.models import Candidate, NeedRequest
from engage.logging import get_logger

from .parsing import parse_availability, parse_flag, parse_optional_text, parse_tag_list

logger = get_logger(__name__, component="normalization")


def _identifier(value: Any) -> str:
    """Stringify an identifier column; None becomes empty (rejected by the models)."""
    if value is None:
        return ""
    return str(value)


def _schedule_value(value: Any) -> Any:
    """Keep datetimes and text for the resolver; drop anything else."""
    if isinstance(value, datetime):
        return value
    return parse_optional_text(value)


class RecordNormalizer:
    """Converts profile and need rows into domain models.

    Responsibilities:
    - Map store column names to domain field names
    - Parse tag and availability columns without raising
    - Skip (and log) rows that cannot become a Candidate
    """

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logger

    def candidate_from_record(self, record: Mapping[str, Any]) -> Candidate:
        """Build a Candidate from a profile row.

        Expected columns: id, full_name, email, gift_selections, availability_level.

        Args:
            record: Profile row as returned by the store

        Returns:
            Candidate with parsed gift tags and availability windows

        Raises:
            ValidationError: If the row has no usable id
        """
        return Candidate(
            id=_identifier(record.get("id")),
            display_name=parse_optional_text(record.get("full_name")),
            contact=parse_optional_text(record.get("email")),
            gift_tags=parse_tag_list(record.get("gift_selections")),
            availability_windows=parse_availability(record.get("availability_level")),
        )

    def need_from_record(self, record: Mapping[str, Any]) -> NeedRequest:
        """Build a NeedRequest from a need row.

        The need's description doubles as the legacy schedule hint: needs
        created before structured scheduling existed carry their recurrence
        as "Ongoing Schedule: ... at HH:MM" inside the description.

        Args:
            record: Need row as returned by the store

        Returns:
            NeedRequest with parsed tags and raw scheduling fields

        Raises:
            ValidationError: If the row has no usable id
        """
        description = record.get("description")
        description = description if isinstance(description, str) else ""

        return NeedRequest(
            id=_identifier(record.get("id")),
            title=record.get("title") if isinstance(record.get("title"), str) else "",
            description=description,
            required_tags=parse_tag_list(record.get("tags")),
            urgency_class=parse_optional_text(record.get("urgency")),
            explicit_time_preference=parse_optional_text(record.get("time_preference")),
            scheduled_at=_schedule_value(record.get("date_time")),
            is_recurring=parse_flag(record.get("is_ongoing")),
            recurring_schedule=parse_optional_text(record.get("ongoing_schedule")),
            recurring_start_date=parse_optional_text(record.get("ongoing_start_date")),
            recurring_start_time=parse_optional_text(record.get("ongoing_start_time")),
            legacy_description_schedule_hint=description or None,
            org_id=parse_optional_text(_identifier(record.get("org_id"))),
            status=parse_optional_text(record.get("status")),
        )

    def candidates_from_records(self, records: Iterable[Mapping[str, Any]]) -> Iterator[Candidate]:
        """Convert a batch of profile rows, skipping rows that fail.

        Args:
            records: Iterable of profile rows

        Yields:
            Candidate for each usable row, in input order
        """
        for index, record in enumerate(records):
            try:
                yield self.candidate_from_record(record)
            except (ValidationError, ValueError, TypeError, AttributeError) as e:
                self.logger.warning(
                    f"Skipping profile row {index}: {e}",
                    extra={
                        "event": "normalization.profile.skipped",
                        "row_index": index,
                        "error_type": type(e).__name__,
                    },
                )
